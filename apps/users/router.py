from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from apps.users.schemas import AdminTokenRequest, UserCreate, UserOut
from apps.users.service import authenticate_admin, create_user
from apps.users.utils import sanitize_user
from constants.acl import ACL_USERS
from models.base import get_db
from models.user import User
from security.auth_backend import get_current_active_user, require_resources

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post("/integration/admin/token", response_model=str)
async def admin_token(payload: AdminTokenRequest, db: AsyncSession = Depends(get_db)):
    """
    Exchange admin credentials for a bearer token (returned as a bare JSON string).
    """
    return await authenticate_admin(db, payload)


# OAuth2 token endpoint for Swagger "Authorize" (password flow)
@router.post("/auth/token")
async def issue_token(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    """
    OAuth2 password flow token endpoint used by the Swagger Authorize dialog.
    Accepts form data fields 'username' and 'password' and returns a bearer token.
    """
    token = await authenticate_admin(db, AdminTokenRequest(username=form_data.username, password=form_data.password))
    return {"access_token": token, "token_type": "bearer"}


@router.get("/users/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_active_user)):
    return sanitize_user(current_user)


@router.post("/users", response_model=UserOut, dependencies=[Depends(require_resources(ACL_USERS))])
async def create_admin_user(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    """
    Create an admin user bound to an existing role.
    - Validates unique username and email
    - Validates password strength and confirmation
    - Stores only hashed password
    """
    return await create_user(db, payload)
