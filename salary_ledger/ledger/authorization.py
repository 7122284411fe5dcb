"""
Role checks for ledger operations.
"""
import logging
from typing import Optional, Union

from salary_ledger.core.exceptions import UnauthorizedSettlementError, InsufficientPermissionsError
from salary_ledger.users.models import UserRole

logger = logging.getLogger(__name__)


def _as_role(role: Union[str, UserRole, None]) -> Optional[UserRole]:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def can_settle(role: Union[str, UserRole, None]) -> bool:
    """Only employers may mark an employee's salary as paid."""
    return _as_role(role) is UserRole.EMPLOYER


def require_settlement_permission(role: Union[str, UserRole, None], employee_id: Optional[int] = None) -> None:
    if not can_settle(role):
        role_value = role.value if isinstance(role, UserRole) else role
        logger.warning(
            f"Settlement denied for role {role_value!r} on employee {employee_id}",
            extra={"user_role": role_value, "employee_id": employee_id}
        )
        raise UnauthorizedSettlementError(role=role_value, employee_id=employee_id)


def can_view_ledger(requester_id: int, requester_role: Union[str, UserRole, None], target_id: int) -> bool:
    """Employees see their own ledger, employers see everyone's."""
    if _as_role(requester_role) is UserRole.EMPLOYER:
        return True
    return requester_id == target_id


def require_view_permission(requester_id: int, requester_role: Union[str, UserRole, None], target_id: int) -> None:
    if not can_view_ledger(requester_id, requester_role, target_id):
        raise InsufficientPermissionsError(
            detail="Employees can only view their own salary records",
            error_data={"requester_id": requester_id, "target_id": target_id}
        )
