from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class SettlementOutcome(str, Enum):
    COMMITTED = "committed"
    NOTHING_OWED = "nothing_owed"


class HoursCreate(BaseModel):
    hours: Decimal = Field(..., gt=0, max_digits=8, decimal_places=2)


class PermanentSalaryCreate(BaseModel):
    salary: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class HourlyRateSet(BaseModel):
    salary: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class HourlyRateUpdate(BaseModel):
    new_salary: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class WorkedHoursResponse(BaseModel):
    id: int
    userid: int
    hours: Decimal
    recorded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PermanentSalaryResponse(BaseModel):
    id: int
    userid: int
    amount: Decimal

    class Config:
        from_attributes = True


class HourlyRateResponse(BaseModel):
    id: int
    userid: int
    rate: Decimal

    class Config:
        from_attributes = True


class HourlyRateUpdateResponse(BaseModel):
    employee_id: int
    new_salary: Decimal


class BalanceTotals(BaseModel):
    user_id: int
    unpaid_hours: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    unpaid_permanent: Decimal = Decimal("0")
    total_owed: Decimal = Decimal("0")

    @property
    def nothing_owed(self) -> bool:
        return self.unpaid_hours == 0 and self.unpaid_permanent == 0


class UnpaidBalance(BalanceTotals):
    firstname: str
    lastname: str


class SettlementResult(BaseModel):
    employee_id: int
    outcome: SettlementOutcome
    total_hours: Decimal
    hourly_salary: Decimal
    permanent_salary: Decimal
    total_salary: Decimal
    history_id: Optional[int] = None
    paid_at: Optional[datetime] = None


class HistoryEntryResponse(BaseModel):
    id: int
    userid: int
    hours_paid: Decimal
    hourly_rate: Decimal
    permanent_paid: Decimal
    total_paid: Decimal
    paid_at: datetime

    class Config:
        from_attributes = True


class HistorySummary(BaseModel):
    user_id: int
    total_hours: Decimal
    permanent_salary: Decimal
    total_paid: Decimal
    payments: int
