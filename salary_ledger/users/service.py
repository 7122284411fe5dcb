from typing import List, Optional
from sqlalchemy.orm import Session

from salary_ledger.users.models import User, UserRole
from salary_ledger.users.schemas import UserProfile, UserResponse
from salary_ledger.core.service_base import BaseService
from salary_ledger.core.exceptions import ResourceNotFoundError
from salary_ledger.ledger.aggregator import BalanceAggregator
from salary_ledger.ledger.store import SqlAlchemyLedgerStore


class UserService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        try:
            return self.get_or_404(User, user_id, "User")
        except ResourceNotFoundError:
            return None

    def get_profile(self, user: User) -> UserProfile:
        """User data with the hourly salary resolved by the configured rate policy."""
        totals = BalanceAggregator(SqlAlchemyLedgerStore(self.db)).compute_balance(user.id)
        return UserProfile(
            **UserResponse.model_validate(user).model_dump(),
            # Rates are positive, so zero means no rate rows
            hourly_salary=totals.effective_rate or None
        )

    def list_employees(self, skip: int = 0, limit: int = 100) -> List[User]:
        """List users with the employee role, ordered by id."""
        query = self.db.query(User).filter(User.role == UserRole.EMPLOYEE).order_by(User.id)
        return self.paginate_query(query, skip, limit).all()
