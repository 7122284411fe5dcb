from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from salary_ledger.core.database import get_db
from salary_ledger.core.security import get_user_id_from_token
from salary_ledger.core.validators import validate_user_id
from salary_ledger.core.exceptions import (
    AuthenticationError,
    InsufficientPermissionsError,
    InvalidUserError
)
from salary_ledger.users.service import UserService
from salary_ledger.users.models import User, UserRole

# Security scheme
security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    user_id = get_user_id_from_token(credentials.credentials)

    try:
        user_id = validate_user_id(user_id)
    except InvalidUserError:
        raise AuthenticationError("Could not validate credentials")

    user = UserService(db).get_user_by_id(user_id)
    if not user:
        raise AuthenticationError("User not found")

    return user


def get_current_employer(current_user: User = Depends(get_current_user)) -> User:
    """Get current authenticated user with the employer role."""
    if current_user.role != UserRole.EMPLOYER:
        raise InsufficientPermissionsError(
            detail="Only employers are allowed to access this resource",
            error_data={"required_role": UserRole.EMPLOYER.value, "user_role": current_user.role.value}
        )
    return current_user
