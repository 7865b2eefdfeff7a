import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.users.schemas import AdminTokenRequest, UserCreate
from apps.users.utils import sanitize_user
from common.exceptions import AuthenticationException, ConflictException, InputException, NoSuchEntityException
from common.hashing import hash_password, verify_password
from common.jwt import create_admin_access_token
from models.user import Role, User
from security.password_rules import assert_passwords_match, validate_password_strength

logger = logging.getLogger(__name__)

SIGN_IN_FAILED = (
    "The account sign-in was incorrect or your account is disabled temporarily. Please wait and try again later."
)


async def create_user(db: AsyncSession, payload: UserCreate) -> dict:
    """
    Create an admin user bound to an existing role.
    """
    res = await db.execute(select(User.id).where(or_(User.username == payload.username, User.email == payload.email)))
    if res.first():
        raise ConflictException("A user with the same user name or email already exists.")

    try:
        assert_passwords_match(payload.password, payload.confirm_password)
    except ValueError as exc:
        raise InputException(str(exc)) from exc
    valid, message = validate_password_strength(payload.password)
    if not valid:
        raise InputException(message)

    role = await db.get(Role, payload.role_id)
    if not role:
        raise NoSuchEntityException("roleId", payload.role_id)

    user = User(
        username=payload.username,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        password_hash=hash_password(payload.password),
        is_active=payload.is_active,
        role_id=role.id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created admin user %s with role %s", user.username, role.name)
    return sanitize_user(user)


async def authenticate_admin(db: AsyncSession, payload: AdminTokenRequest) -> str:
    """
    Exchange admin credentials for a bearer token. Unknown users, wrong
    passwords and inactive accounts all get the same 401.
    """
    res = await db.execute(select(User).where(User.username == payload.username))
    user = res.scalar_one_or_none()
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        logger.warning("Rejected admin token request for %s", payload.username)
        raise AuthenticationException(SIGN_IN_FAILED)
    return create_admin_access_token(user.id, user.username)
