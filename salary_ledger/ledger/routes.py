from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from salary_ledger.core.database import get_db
from salary_ledger.core.dependencies import get_current_user, get_current_employer
from salary_ledger.core.route_decorators import log_route_access
from salary_ledger.users.models import User
from salary_ledger.ledger.schemas import (
    BalanceTotals,
    HistoryEntryResponse,
    HistorySummary,
    HourlyRateResponse,
    HourlyRateSet,
    HourlyRateUpdate,
    HourlyRateUpdateResponse,
    HoursCreate,
    PermanentSalaryCreate,
    PermanentSalaryResponse,
    SettlementResult,
    UnpaidBalance,
    WorkedHoursResponse,
)
from salary_ledger.ledger.service import LedgerEntryService

router = APIRouter(prefix="/salary", tags=["salary"])


@router.post("/hours", response_model=WorkedHoursResponse, status_code=status.HTTP_201_CREATED)
async def add_hours(
    hours_data: HoursCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add worked hours for the current user."""
    return LedgerEntryService(db).add_hours(current_user, hours_data.hours)


@router.post("/permanent", response_model=PermanentSalaryResponse, status_code=status.HTTP_201_CREATED)
async def add_permanent_salary(
    salary_data: PermanentSalaryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an unpaid permanent salary amount for the current user."""
    return LedgerEntryService(db).add_permanent_salary(current_user, salary_data.salary)


@router.post("/hourly", response_model=HourlyRateResponse, status_code=status.HTTP_201_CREATED)
async def set_hourly_salary(
    rate_data: HourlyRateSet,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set the hourly salary of the current user."""
    return LedgerEntryService(db).set_hourly_rate(current_user, rate_data.salary)


@router.put("/{employee_id}/hourly", response_model=HourlyRateUpdateResponse)
@log_route_access
async def edit_hourly_salary(
    employee_id: int,
    rate_data: HourlyRateUpdate,
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    """Replace an employee's hourly salary."""
    return LedgerEntryService(db).edit_hourly_rate(current_user, employee_id, rate_data.new_salary)


@router.get("/unpaid", response_model=BalanceTotals)
async def get_unpaid(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the unpaid hours and salaries of the current user."""
    return LedgerEntryService(db).get_unpaid(current_user)


@router.get("/unpaid/all", response_model=List[UnpaidBalance])
async def get_all_unpaid(
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    """Get unpaid balances of all employees who are owed something."""
    return LedgerEntryService(db).list_unpaid_balances()


@router.post("/payment/request", response_model=BalanceTotals)
@log_route_access
async def request_payment(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Send a salary payment request to the employer."""
    return LedgerEntryService(db).request_payment(current_user)


@router.post("/{employee_id}/payment", response_model=SettlementResult)
@log_route_access
async def payment_done(
    employee_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark an employee's unpaid salary as paid and move it to history."""
    return LedgerEntryService(db).payment_done(current_user, employee_id)


@router.get("/history/{user_id}", response_model=List[HistoryEntryResponse])
async def get_history(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get paid salary history of a user."""
    return LedgerEntryService(db).get_history(current_user, user_id, skip=skip, limit=limit)


@router.get("/history/{user_id}/summary", response_model=HistorySummary)
async def get_history_summary(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get total paid hours and salary of a user."""
    return LedgerEntryService(db).get_history_summary(current_user, user_id)
