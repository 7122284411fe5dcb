from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from salary_ledger.core.database import get_db
from salary_ledger.core.dependencies import get_current_user, get_current_employer
from salary_ledger.users.models import User
from salary_ledger.users.schemas import UserProfile, EmployeeSummary
from salary_ledger.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfile)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get current user information and hourly salary."""
    return UserService(db).get_profile(current_user)


@router.get("/employees", response_model=List[EmployeeSummary])
async def get_all_employees(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    """List all employees."""
    return UserService(db).list_employees(skip=skip, limit=limit)
