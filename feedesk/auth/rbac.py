from fastapi import Depends, HTTPException, status

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.schemas import CurrentUser
from feedesk.core.enums import Role

# Area -> action -> roles allowed. ADMIN is always allowed.
PERMISSIONS = {
    "students": {
        "read": {Role.ACCOUNTANT, Role.TEACHER},
        "write": {Role.ACCOUNTANT},
    },
    "payments": {
        "read": {Role.ACCOUNTANT, Role.PARENT},
        "write": {Role.ACCOUNTANT},
    },
    "fees": {
        "read": {Role.ACCOUNTANT, Role.TEACHER},
        "write": set(),
    },
    "reports": {
        "read": {Role.ACCOUNTANT},
    },
    "dashboard": {
        "read": {Role.ACCOUNTANT, Role.TEACHER, Role.PARENT},
    },
    "users": {
        "read": set(),
        "write": set(),
    },
}


def check_permission(area: str, action: str):
    """
    Dependency factory to enforce a role permission.

    Example:
        Depends(check_permission("payments", "write"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role == Role.ADMIN:
            return current_user
        allowed = PERMISSIONS.get(area, {}).get(action, set())
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker
