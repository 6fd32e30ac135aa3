"""
SaaS Starter - Main Application Entry Point
Team-scoped accounts, RBAC, Stripe subscriptions and an activity trail
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import structlog

from saas_starter.core.config import get_settings
from saas_starter.core.errors import AppError, app_error_handler
from saas_starter.core.session_middleware import SessionRefreshMiddleware
from saas_starter.api import account, auth, billing, dashboard, team, users, webhooks

settings = get_settings()

logging.basicConfig(format="%(message)s", level=logging.DEBUG if settings.DEBUG else logging.INFO)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Initializing {settings.APP_NAME} backend")
    # Tables are created by Alembic migrations, not auto-generated
    logger.info("Database managed by Alembic migrations")

    yield

    logger.info(f"Shutting down {settings.APP_NAME} backend")


# Create FastAPI application
app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Multi-tenant SaaS starter with teams, RBAC and Stripe subscriptions",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Configure middleware stack
app.add_middleware(SessionRefreshMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(account.router, prefix="/api/account", tags=["account"])
app.include_router(team.router, prefix="/api/team", tags=["team"])
app.include_router(billing.router, prefix="/api/stripe", tags=["billing"])
app.include_router(webhooks.router, prefix="/api/stripe", tags=["webhooks"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "saas-starter-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "saas_starter.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
