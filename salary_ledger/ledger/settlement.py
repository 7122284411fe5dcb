"""
Settlement ("payment done"): pay out an employee's whole unpaid balance and
archive it in the history ledger.

States of one invocation::

    START -> AUTHORIZED -> BALANCE_COMPUTED -> NOTHING_OWED | COMMITTED
                 any step may end in ABORTED

Reading the balance, deleting the consumed rows and appending the history row
all happen inside one store transaction, with the employee's user row and
unpaid rows locked. A concurrent settlement of the same employee waits for the
first to finish and then finds nothing left to pay.

When nothing is owed (no unpaid hours and no unpaid permanent salary) no
history row is written unless ``record_zero_settlements`` is enabled, in which
case a zero-amount row is appended for the audit trail.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from salary_ledger.core.config import settings
from salary_ledger.core.exceptions import (
    BaseAPIException,
    NoUnpaidSalaryError,
    ResourceNotFoundError,
    SettlementFailedError,
)
from salary_ledger.core.logging_config import LedgerOperationLogger
from salary_ledger.core.validators import validate_user_id
from salary_ledger.ledger.aggregator import BalanceAggregator
from salary_ledger.ledger.authorization import require_settlement_permission
from salary_ledger.ledger.schemas import BalanceTotals, SettlementOutcome, SettlementResult
from salary_ledger.ledger.store import HistoryRecord, LedgerStore

logger = logging.getLogger(__name__)


class SettlementState(str, Enum):
    START = "start"
    AUTHORIZED = "authorized"
    BALANCE_COMPUTED = "balance_computed"
    NOTHING_OWED = "nothing_owed"
    COMMITTED = "committed"
    ABORTED = "aborted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettlementTransaction:
    def __init__(
        self,
        store: LedgerStore,
        aggregator: Optional[BalanceAggregator] = None,
        notifier=None,
        record_zero_settlements: Optional[bool] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.store = store
        self.aggregator = aggregator or BalanceAggregator(store)
        self.notifier = notifier
        if record_zero_settlements is None:
            record_zero_settlements = settings.record_zero_settlements
        self.record_zero_settlements = record_zero_settlements
        self.clock = clock
        self.state = SettlementState.START

    def settle(self, requester_role, employee_id, requester_name: Optional[str] = None) -> SettlementResult:
        """Settle the full unpaid balance of ``employee_id`` on behalf of an employer.

        ``requester_name`` is used to address the payment-done notification.
        """
        self.state = SettlementState.START

        with LedgerOperationLogger("payment_done", employee_id, logger) as operation:
            try:
                require_settlement_permission(requester_role, employee_id)
                employee_id = validate_user_id(employee_id)
            except BaseAPIException:
                self._transition(SettlementState.ABORTED)
                raise
            self._transition(SettlementState.AUTHORIZED)

            try:
                with self.store.transaction():
                    result = self._settle_locked(employee_id)
            except BaseAPIException:
                self._transition(SettlementState.ABORTED)
                raise
            except Exception as e:
                self._transition(SettlementState.ABORTED)
                logger.error(f"Settlement for employee {employee_id} rolled back: {type(e).__name__}: {e}")
                raise SettlementFailedError(
                    employee_id,
                    error_data={"original_error": str(e)}
                ) from e

            if result.outcome is SettlementOutcome.COMMITTED:
                self._transition(SettlementState.COMMITTED)
            else:
                self._transition(SettlementState.NOTHING_OWED)

            operation.add_detail("outcome", result.outcome.value)
            operation.add_detail("total_salary", result.total_salary)

        if result.outcome is SettlementOutcome.COMMITTED:
            self._notify(result, requester_name)

        return result

    def _settle_locked(self, employee_id: int) -> SettlementResult:
        if not self.store.user_exists(employee_id, lock=True):
            raise ResourceNotFoundError("Employee", employee_id)

        snapshot = self.store.read_aggregates(employee_id, lock=True)
        if not snapshot.has_records:
            raise NoUnpaidSalaryError(employee_id)

        totals = self.aggregator.totals_from(snapshot)
        self._transition(SettlementState.BALANCE_COMPUTED)

        if totals.nothing_owed and not self.record_zero_settlements:
            return self._build_result(totals, SettlementOutcome.NOTHING_OWED)

        self.store.delete_consumed(snapshot)
        record = self.store.append_history(
            user_id=employee_id,
            hours_paid=totals.unpaid_hours,
            hourly_rate=totals.effective_rate,
            permanent_paid=totals.unpaid_permanent,
            total_paid=totals.total_owed,
            paid_at=self.clock(),
        )
        return self._build_result(totals, SettlementOutcome.COMMITTED, record)

    @staticmethod
    def _build_result(
        totals: BalanceTotals,
        outcome: SettlementOutcome,
        record: Optional[HistoryRecord] = None
    ) -> SettlementResult:
        return SettlementResult(
            employee_id=totals.user_id,
            outcome=outcome,
            total_hours=totals.unpaid_hours,
            hourly_salary=totals.effective_rate,
            permanent_salary=totals.unpaid_permanent,
            total_salary=totals.total_owed,
            history_id=record.id if record else None,
            paid_at=record.paid_at if record else None,
        )

    def _transition(self, state: SettlementState):
        logger.debug(f"Settlement state {self.state.value} -> {state.value}")
        self.state = state

    def _notify(self, result: SettlementResult, requester_name: Optional[str] = None):
        if self.notifier is None:
            return
        try:
            self.notifier.notify_payment_done(result, requester_name)
        except Exception as e:
            # Settlement is already committed
            logger.error(f"Payment notification for employee {result.employee_id} failed: {e}")
