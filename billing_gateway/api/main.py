"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from billing_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from billing_gateway.api.v1 import brackets, contracts, schedules
from billing_gateway.infrastructure.observability.logging import setup_logging
from billing_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Billing Gateway",
        description="Installment schedules and tariff bracket matching",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(schedules.router, prefix="/v1", tags=["schedules"])
    app.include_router(contracts.router, prefix="/v1", tags=["contracts"])
    app.include_router(brackets.router, prefix="/v1", tags=["brackets"])

    return app


app = create_app()
