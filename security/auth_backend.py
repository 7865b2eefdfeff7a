from typing import Iterable, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from common.exceptions import AuthenticationException, ForbiddenException
from common.jwt import decode_admin_access_token
from models.base import get_db
from models.user import User
from security.authorization import AuthorizationGate

# tokenUrl points at the form-based endpoint so the interactive docs can sign in
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=True)
# Same scheme without the automatic 401, for bindings that report errors in their own format
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

NOT_AUTHORIZED = "The consumer isn't authorized to access %resources."


async def authenticate_token(db: AsyncSession, token: Optional[str]) -> User:
    """
    Validate an access token and load the active admin user it was issued to.
    """
    if not token:
        raise AuthenticationException(NOT_AUTHORIZED, {"resources": "self"})
    try:
        user_id = decode_admin_access_token(token)
    except JWTError:
        raise AuthenticationException("The token is invalid or has expired.") from None

    user: Optional[User] = await db.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationException("The token is invalid or has expired.")
    return user


async def authorize_resources(db: AsyncSession, user: User, resources: Iterable[str]) -> User:
    """
    Raise 403 unless the user's role grants every listed ACL resource.
    """
    resources = tuple(resources)
    if not await AuthorizationGate(db).check(user.role_id, resources):
        raise ForbiddenException(NOT_AUTHORIZED, {"resources": ", ".join(resources)})
    return user


async def get_current_active_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)) -> User:
    return await authenticate_token(db, token)


def require_resources(*resources: str):
    """
    Dependency factory enforcing that the current user's role grants every listed ACL resource.
    Returns the user so endpoints can pass it on as the acting principal.
    Usage:
      @router.get("/x")
      async def x(user: User = Depends(require_resources(CATEGORIES))): ...
    """
    async def _dependency(
        current_user: User = Depends(get_current_active_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        return await authorize_resources(db, current_user, resources)

    return _dependency
