from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from decimal import Decimal

from salary_ledger.users.models import UserRole


class UserResponse(BaseModel):
    id: int
    firstname: str
    lastname: str
    role: UserRole
    iban: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmployeeSummary(BaseModel):
    id: int
    firstname: str
    lastname: str

    class Config:
        from_attributes = True


class UserProfile(UserResponse):
    """Profile of the calling user with their effective hourly salary, if any."""
    hourly_salary: Optional[Decimal] = None
