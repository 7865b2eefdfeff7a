import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from apps.categories.router import router as categories_router
from apps.roles.router import router as roles_router
from apps.soap.router import router as soap_router
from apps.url_rewrites.router import router as url_rewrites_router
from apps.users.router import router as users_router
from common.exceptions import ApiException
from common.hashing import hash_password
from common.responses import api_exception_handler
from constants.acl import ADMINISTRATORS_ROLE, ALL
from constants.catalog import DEFAULT_ROOT_ID, TREE_ROOT_ID
from models.base import Base, engine, SessionLocal
from models.category import Category
from models.user import AuthorizationRule, Role, User
from settings.config import get_settings
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def seed_defaults(db: AsyncSession) -> None:
    """
    Ensure the reserved category roots, the Administrators role and the
    bootstrap admin user exist. Safe to run on every startup.
    """
    settings = get_settings()

    if not await db.get(Category, TREE_ROOT_ID):
        db.add(Category(id=TREE_ROOT_ID, parent_id=None, path=str(TREE_ROOT_ID), level=0, position=0, name="Root Catalog",
                        is_active=True, include_in_menu=True, available_sort_by=[]))
        await db.flush()
    if not await db.get(Category, DEFAULT_ROOT_ID):
        db.add(Category(id=DEFAULT_ROOT_ID, parent_id=TREE_ROOT_ID, path=f"{TREE_ROOT_ID}/{DEFAULT_ROOT_ID}", level=1,
                        position=1, name="Default Category", is_active=True, include_in_menu=True,
                        available_sort_by=[]))
        await db.flush()
    if db.bind.dialect.name == "postgresql":
        # Explicit ids do not advance the serial sequence
        await db.execute(text("SELECT setval(pg_get_serial_sequence('categories', 'id'), (SELECT MAX(id) FROM categories))"))

    role_res = await db.execute(select(Role).where(Role.name == ADMINISTRATORS_ROLE))
    admin_role = role_res.scalar_one_or_none()
    if not admin_role:
        admin_role = Role(name=ADMINISTRATORS_ROLE)
        db.add(admin_role)
        await db.flush()
        db.add(AuthorizationRule(role_id=admin_role.id, resource_id=ALL))

    user_res = await db.execute(select(User).where(User.username == settings.ADMIN_USERNAME))
    if not user_res.scalar_one_or_none():
        db.add(User(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            first_name="Admin",
            last_name="User",
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            is_active=True,
            role_id=admin_role.id,
        ))
    await db.commit()


def create_app() -> FastAPI:
    """
    Application factory to build a FastAPI app with all middlewares and routers.
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="1.0.0",
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "SOAPAction"],
        expose_headers=["Authorization"],
    )

    # Security headers middleware (helmet-like)
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        return response

    if settings.ENABLE_RATE_LIMITER:
        # Build a default limit string from settings, using common time units
        req = settings.RATE_LIMIT_REQUESTS
        win = settings.RATE_LIMIT_WINDOW_SECONDS
        units = {1: "second", 60: "minute", 3600: "hour", 86400: "day"}
        default_limit = f"{req}/{units[win]}" if win in units else f"{req} per {win} seconds"

        limiter = Limiter(
            key_func=get_remote_address,
            default_limits=[default_limit],
            storage_uri=settings.RATE_LIMIT_STORAGE_URI or None,
        )
        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
        app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(ApiException, api_exception_handler)

    # Routers
    app.include_router(users_router)
    app.include_router(roles_router)
    app.include_router(categories_router)
    app.include_router(url_rewrites_router)
    app.include_router(soap_router)

    # Ensure tables exist (for local/dev). In prod, use Alembic migrations.
    @app.on_event("startup")
    async def on_startup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with SessionLocal() as db:
            await seed_defaults(db)
        logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
