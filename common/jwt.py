"""Admin bearer tokens: signed JWTs bound to an admin user id."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from settings.config import get_settings

ACCESS_TOKEN_TYPE = "access"


def create_admin_access_token(user_id: int, username: str) -> str:
    """
    Issue an admin access token.

    Only the user id travels in the token; the role's rules are looked up on
    every request so rule changes apply to tokens already issued.
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "type": ACCESS_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": int(issued_at.timestamp()),
        "nbf": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_admin_access_token(token: str) -> int:
    """
    Return the admin user id of a valid access token.
    Raises JWTError for bad signatures, expired tokens, wrong issuer/audience or token type.
    """
    settings = get_settings()
    claims = jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
        options={"require_exp": True, "require_sub": True},
    )
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise JWTError("Invalid token type.")
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise JWTError("Invalid token subject.") from exc
