# hostel_authz/main.py

import sys

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hostel_authz.core.database import test_connection, init_db, AsyncSessionLocal
from hostel_authz.core.config import settings
from hostel_authz.core.rate_limiter import limiter
from hostel_authz.api.deps import get_enforcement
from hostel_authz.services.auth_service import get_user_by_email, create_user
from hostel_authz.models.user import UserRole

# Routers
from hostel_authz.api.endpoints import (
    auth as auth_router,
    authz as authz_router,
    users as users_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="Hostel AuthZ Backend",
    version="1.0.0",
    description="Session authentication and layered authorization for the hostel administration backend.",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ------------------------------------------------------------
# ERROR SHAPE: {"success": false, "message": ...}
# ------------------------------------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Invalid request",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Storage failure on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(auth_router.router)
app.include_router(authz_router.router)
app.include_router(users_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting Hostel AuthZ Backend...")

    enforcement = get_enforcement()
    logger.info(
        f"AuthZ mode={enforcement.mode.value} "
        f"enforced_routes={len(enforcement.enforced_route_keys)} "
        f"enforced_capabilities={len(enforcement.enforced_capability_keys)} "
        f"log_denies={enforcement.log_observe_denies}"
    )

    # 1) Database connection test
    try:
        await test_connection()
        logger.success("Database connection established.")
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        return

    # 2) Initialize database tables
    await init_db()
    logger.success("Database tables ready.")

    # 3) Seed Super Admin
    if not settings.SUPER_ADMIN_EMAIL or not settings.SUPER_ADMIN_PASSWORD:
        logger.warning("Missing Super Admin credentials in settings.")
    else:
        async with AsyncSessionLocal() as session:
            existing = await get_user_by_email(session, settings.SUPER_ADMIN_EMAIL)
            if not existing:
                logger.info(f"Seeding Super Admin: {settings.SUPER_ADMIN_EMAIL}")
                await create_user(
                    session=session,
                    name=settings.SUPER_ADMIN_NAME or "Super Admin",
                    email=settings.SUPER_ADMIN_EMAIL,
                    password=settings.SUPER_ADMIN_PASSWORD,
                    role=UserRole.SuperAdmin,
                )
                logger.success("Super Admin created successfully.")
            else:
                logger.info("Super Admin already exists. Skipping.")

    logger.success("Backend startup completed successfully.")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "status": "ok",
        "service": "Hostel AuthZ Backend",
        "version": app.version,
        "authz_mode": get_enforcement().mode.value,
    }
