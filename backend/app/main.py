# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME, REQUEST_ID_HEADER
from .core.request_context import attach_request_id_filter
from .errors import register_error_handlers
from .middleware.request_id_asgi import RequestIdMiddlewareASGI
from .routes import prometheus, ready
from .routes.v1 import (
    admin_credits as admin_credits_v1,
    admin_policies as admin_policies_v1,
    bookings as bookings_v1,
    cancellation_policy as cancellation_policy_v1,
    credits as credits_v1,
    webhooks_payments as webhooks_payments_v1,
)
from .schemas.main_responses import HealthResponse, RootResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
attach_request_id_filter()


logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment} (SITE_MODE={settings.site_mode or 'unset'})")
    if not settings.hundredms_enabled:
        logger.info("100ms disabled: bookings use generated channel names")
    if not settings.notifications_enabled:
        logger.info("Notifications disabled: outbound messages are recorded in memory only")
    if settings.payment_webhook_secret is None:
        logger.warning("PAYMENT_WEBHOOK_SECRET not set: purchase webhooks will be rejected")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


fastapi_app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
register_error_handlers(fastapi_app)

fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)
fastapi_app.add_middleware(RequestIdMiddlewareASGI)

# API v1 router - all versioned endpoints
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(credits_v1.router, prefix="/credits")
api_v1.include_router(cancellation_policy_v1.router, prefix="/cancellation-policy")
api_v1.include_router(admin_policies_v1.router, prefix="/admin")
api_v1.include_router(admin_credits_v1.router, prefix="/admin")
api_v1.include_router(webhooks_payments_v1.router, prefix="/webhooks/payments")

fastapi_app.include_router(api_v1)

# Readiness probe - Kubernetes depends on /ready for pod readiness checks
fastapi_app.include_router(ready.router)

# Prometheus metrics - Standard /metrics/prometheus path for Prometheus scraping
fastapi_app.include_router(prometheus.router)


@fastapi_app.get("/", response_model=RootResponse)
def read_root() -> RootResponse:
    """Root endpoint - API information"""
    return RootResponse(
        message=f"Welcome to the {BRAND_NAME} API!",
        version=API_VERSION,
        docs="/docs",
        environment=settings.environment,
    )


def _health_payload() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service="session-ledger-api",
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@fastapi_app.get("/health", response_model=HealthResponse, include_in_schema=False)
def health_check(response: Response) -> HealthResponse:
    response.headers["X-Site-Mode"] = settings.site_mode or "unset"
    return _health_payload()


@fastapi_app.get("/api/v1/health", response_model=HealthResponse)
def api_health() -> HealthResponse:
    return _health_payload()


app = fastapi_app
