"""JWT verification.

Tokens are issued by the platform's auth service; this service only
verifies them. Both sides share JWT_SECRET (HS256).
"""

from jose import JWTError, jwt

from config.settings import settings
from src.wg_common.errors import InvalidCredentialsError


def decode_access_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature invalid, token expired, or the
            token is not of type "access" (refresh tokens are rejected).
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
