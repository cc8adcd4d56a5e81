from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_access_token

_bearer = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    """
    Resolve the caller from the bearer token.

    Sessions are issued elsewhere; this only trusts a signed token carrying
    `sub` (user id) and `role`.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(get_error_message("unauthorized"))

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise UnauthorizedError(get_error_message("unauthorized"))

    try:
        int(claims.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError(get_error_message("unauthorized")) from None
    return claims
