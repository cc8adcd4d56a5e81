from fastapi import Depends

from ..models.user import ROLE_ADMIN, ROLE_RECRUITER
from .dependencies import get_current_user
from .error_handlers import AuthorizationError


def _role_required(*allowed_roles: str):
    def check_role(user=Depends(get_current_user)):
        if user.get("role") not in allowed_roles:
            raise AuthorizationError(f"{' or '.join(r.capitalize() for r in allowed_roles)} access only")
        return user
    return check_role


recruiter_or_admin = _role_required(ROLE_RECRUITER, ROLE_ADMIN)


def caller_id(user: dict) -> int:
    return int(user.get("sub"))


def is_admin(user: dict) -> bool:
    return user.get("role") == ROLE_ADMIN
