"""FastAPI application factory"""

from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from teller_client.api.middleware import RequestIDMiddleware, MetricsMiddleware
from teller_client.api.v1 import accounts, session, transactions
from teller_client.infrastructure.observability.logging import setup_logging
from teller_client.config import settings
from teller_client.services.container import Services, build_services

# Setup structured logging
setup_logging(settings.log_level)


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure the front end driving the client components"""
    app = FastAPI(
        title="Teller Client",
        description="Session and transaction orchestration for the banking backend",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.services = services or build_services()
    app.state.flows = {}

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "authenticated": app.state.services.session_store.current is not None,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(session.router, prefix="/v1", tags=["session"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app
