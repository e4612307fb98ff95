import logging
import os
import time
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_content,  # noqa: F401
    models_home,  # noqa: F401
    models_messaging,  # noqa: F401
)
from .config import ALLOWED_ORIGINS, RATE_LIMIT_ENABLED
from .database import Base, engine
from .domain.admin.router import router as admin_router
from .domain.auth.router import router as auth_router
from .domain.credits.router import admin_router as credits_admin_router
from .domain.credits.router import router as credits_router
from .domain.expenses.router import router as expenses_router
from .domain.home_projects.router import router as home_projects_router
from .domain.ideas.router import admin_router as ideas_admin_router
from .domain.ideas.router import portfolio_router
from .domain.ideas.router import router as ideas_router
from .domain.leads.router import router as leads_router
from .domain.messaging.router import router as messaging_router
from .domain.notifications.router import router as notifications_router
from .domain.properties.router import router as properties_router
from .domain.quotes.router import router as quotes_router
from .domain.resources.router import admin_router as resources_admin_router
from .domain.resources.router import router as resources_router
from .domain.reviews.router import admin_router as reviews_admin_router
from .domain.reviews.router import router as reviews_router
from .domain.service_history.router import router as service_history_router
from .domain.service_reminders.router import router as service_reminders_router
from .domain.users.router import pros_router, uploads_router
from .domain.users.router import router as users_router
from .exceptions import AppError
from .realtime import sio
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    if RATE_LIMIT_ENABLED:
        try:
            from .rate_limiter import get_redis_client

            get_redis_client()  # Connection test
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed - rate limited routes will return 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Homezy API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "code": "VALIDATION_ERROR"},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start) * 1000
    logger.info(f"📥 {request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(pros_router)
app.include_router(uploads_router)
app.include_router(credits_router)
app.include_router(leads_router)
app.include_router(quotes_router)
app.include_router(reviews_router)
app.include_router(messaging_router)
app.include_router(notifications_router)
app.include_router(resources_router)
app.include_router(portfolio_router)
app.include_router(ideas_router)
app.include_router(properties_router)
app.include_router(home_projects_router)
app.include_router(expenses_router)
app.include_router(service_history_router)
app.include_router(service_reminders_router)

# Admin
app.include_router(admin_router)
app.include_router(credits_admin_router)
app.include_router(resources_admin_router)
app.include_router(ideas_admin_router)
app.include_router(reviews_admin_router)


@app.get("/")
def root():
    return {"message": "Homezy API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


# Socket.IO on /socket.io, everything else falls through to FastAPI.
# Serve with: uvicorn homezy.main:asgi_app
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
