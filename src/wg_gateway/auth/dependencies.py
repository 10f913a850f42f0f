"""FastAPI dependencies: get_current_user, require_admin.

Usage in any protected router:
    from src.wg_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: CurrentUser = Depends(get_current_user)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.wg_common.errors import AdminRequiredError, InvalidCredentialsError
from src.wg_gateway.auth.jwt_handler import decode_access_token

# Tokens come from the platform auth service; tokenUrl only feeds Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    id: str

    @property
    def is_admin(self) -> bool:
        return self.id in settings.ADMIN_USER_IDS


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Extract and validate the JWT Bearer token.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return CurrentUser(id=payload["sub"])


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Settlement triggers are restricted to ADMIN_USER_IDS."""
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user
