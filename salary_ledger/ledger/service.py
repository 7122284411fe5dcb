from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from salary_ledger.core.service_base import BaseService
from salary_ledger.core.validators import validate_positive_amount, validate_user_id
from salary_ledger.core.exceptions import InsufficientPermissionsError, NothingToRequestError
from salary_ledger.ledger.aggregator import BalanceAggregator
from salary_ledger.ledger.authorization import require_view_permission
from salary_ledger.ledger.models import (
    HistoryEntry,
    HourlyRateRecord,
    PermanentSalaryEntry,
    WorkedHoursRecord,
)
from salary_ledger.ledger.schemas import (
    BalanceTotals,
    HistorySummary,
    HourlyRateUpdateResponse,
    SettlementResult,
    UnpaidBalance,
)
from salary_ledger.ledger.settlement import SettlementTransaction
from salary_ledger.ledger.store import SqlAlchemyLedgerStore, to_decimal
from salary_ledger.notifications.service import EmailNotificationService, notification_service
from salary_ledger.users.models import User, UserRole


class LedgerEntryService(BaseService):
    def __init__(self, db: Session, notifier: Optional[EmailNotificationService] = None):
        super().__init__(db)
        self.store = SqlAlchemyLedgerStore(db)
        self.aggregator = BalanceAggregator(self.store)
        self.notifier = notifier or notification_service

    def add_hours(self, user: User, hours) -> WorkedHoursRecord:
        """Record worked, still unpaid hours for the calling user."""
        hours = validate_positive_amount(hours, "hours")

        entry = WorkedHoursRecord(userid=user.id, hours=hours)
        self.db.add(entry)
        self.safe_commit("Error adding hours")
        self.db.refresh(entry)

        self.log_service_action("add_hours", "WorkedHoursRecord", entry.id, {"user_id": user.id, "hours": str(hours)})
        return entry

    def add_permanent_salary(self, user: User, amount) -> PermanentSalaryEntry:
        """Record a flat unpaid salary amount for the calling user."""
        amount = validate_positive_amount(amount, "salary")

        entry = PermanentSalaryEntry(userid=user.id, amount=amount)
        self.db.add(entry)
        self.safe_commit("Error adding permanent salary")
        self.db.refresh(entry)

        self.log_service_action("add_permanent_salary", "PermanentSalaryEntry", entry.id, {"user_id": user.id})
        return entry

    def set_hourly_rate(self, user: User, rate) -> HourlyRateRecord:
        rate = validate_positive_amount(rate, "salary")

        record = HourlyRateRecord(userid=user.id, rate=rate)
        self.db.add(record)
        self.safe_commit("Failed to set hourly salary")
        self.db.refresh(record)

        self.log_service_action("set_hourly_rate", "HourlyRateRecord", record.id, {"user_id": user.id})
        return record

    def edit_hourly_rate(self, requester: User, employee_id, new_rate) -> HourlyRateUpdateResponse:
        """Replace an employee's hourly rate rows with a single new rate (employer only)."""
        if requester.role != UserRole.EMPLOYER:
            raise InsufficientPermissionsError(
                detail="Only employers are allowed to update hourly salaries",
                error_data={"user_role": requester.role.value}
            )
        employee_id = validate_user_id(employee_id)
        new_rate = validate_positive_amount(new_rate, "new_salary")
        self.get_or_404(User, employee_id, "Employee")

        self.db.query(HourlyRateRecord).filter(
            HourlyRateRecord.userid == employee_id
        ).delete(synchronize_session=False)
        self.db.add(HourlyRateRecord(userid=employee_id, rate=new_rate))
        self.safe_commit("Error updating hourly salary")

        self.log_service_action("edit_hourly_rate", "User", employee_id, {"editor_id": requester.id})
        return HourlyRateUpdateResponse(employee_id=employee_id, new_salary=new_rate)

    def get_unpaid(self, user: User) -> BalanceTotals:
        """Current unpaid totals of the calling user; a zero balance is a valid answer."""
        return self.aggregator.compute_balance(user.id)

    def request_payment(self, user: User) -> BalanceTotals:
        """Ask the employer to pay the current balance."""
        totals = self.aggregator.compute_balance(user.id)
        if totals.unpaid_hours <= 0 and totals.unpaid_permanent <= 0:
            raise NothingToRequestError(user.id)

        self.notifier.notify_payment_request(totals, user.firstname)
        self.log_service_action("request_payment", "User", user.id, {"total_owed": str(totals.total_owed)})
        return totals

    def list_unpaid_balances(self) -> List[UnpaidBalance]:
        """Unpaid balance of every employee who still has something owed."""
        employees = self.db.query(User).filter(User.role == UserRole.EMPLOYEE).order_by(User.id).all()

        balances = []
        for employee in employees:
            totals = self.aggregator.compute_balance(employee.id)
            if totals.nothing_owed:
                continue
            balances.append(UnpaidBalance(
                firstname=employee.firstname,
                lastname=employee.lastname,
                **totals.model_dump()
            ))
        return balances

    def payment_done(self, requester: User, employee_id) -> SettlementResult:
        engine = SettlementTransaction(self.store, self.aggregator, notifier=self.notifier)
        return engine.settle(requester.role, employee_id, requester.firstname)

    def get_history(self, requester: User, user_id, skip: int = 0, limit: int = 100) -> List[HistoryEntry]:
        user_id = validate_user_id(user_id)
        require_view_permission(requester.id, requester.role, user_id)

        query = self.db.query(HistoryEntry).filter(
            HistoryEntry.userid == user_id
        ).order_by(HistoryEntry.paid_at.desc(), HistoryEntry.id.desc())
        return self.paginate_query(query, skip, limit).all()

    def get_history_summary(self, requester: User, user_id) -> HistorySummary:
        user_id = validate_user_id(user_id)
        require_view_permission(requester.id, requester.role, user_id)

        total_hours, permanent, total_paid, payments = self.db.query(
            func.coalesce(func.sum(HistoryEntry.hours_paid), 0),
            func.coalesce(func.sum(HistoryEntry.permanent_paid), 0),
            func.coalesce(func.sum(HistoryEntry.total_paid), 0),
            func.count(HistoryEntry.id)
        ).filter(HistoryEntry.userid == user_id).one()

        return HistorySummary(
            user_id=user_id,
            total_hours=to_decimal(total_hours),
            permanent_salary=to_decimal(permanent),
            total_paid=to_decimal(total_paid),
            payments=payments,
        )
