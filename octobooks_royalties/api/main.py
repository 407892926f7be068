"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from octobooks_royalties.api.middleware import RequestIDMiddleware, MetricsMiddleware
from octobooks_royalties.api.v1 import accounts, payouts, reports, sales
from octobooks_royalties.infrastructure.observability.logging import setup_logging
from octobooks_royalties.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Octobooks Royalty Ledger",
        description="Sale recording, royalty allocation, sales reports and payouts",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

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
    app.include_router(sales.router, prefix="/v1", tags=["sales"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(payouts.router, prefix="/v1", tags=["payouts"])

    return app


app = create_app()
