"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from money_dashboard.api.middleware import RequestIDMiddleware, MetricsMiddleware
from money_dashboard.api.v1 import (
    alerts,
    analysis,
    auth,
    automated_payments,
    calculations,
    dashboard,
    plaid,
    settings as settings_routes,
    setup,
    transactions,
)
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.observability.logging import setup_logging
from money_dashboard.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Money Dashboard",
        description="Personal finance outlook, spending, and transaction search service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.cache = TTLCache()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(settings_routes.router, prefix="/v1", tags=["settings"])
    app.include_router(plaid.router, prefix="/v1", tags=["plaid"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(calculations.router, prefix="/v1", tags=["calculations"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])
    app.include_router(alerts.router, prefix="/v1", tags=["alerts"])
    app.include_router(automated_payments.router, prefix="/v1", tags=["automated-payments"])
    app.include_router(setup.router, prefix="/v1", tags=["setup"])
    app.include_router(analysis.router, prefix="/v1", tags=["analysis"])

    return app


app = create_app()
