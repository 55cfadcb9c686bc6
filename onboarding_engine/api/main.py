"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from onboarding_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from onboarding_engine.api.v1 import risk, sessions
from onboarding_engine.infrastructure.clients.compliance import ComplianceClient
from onboarding_engine.infrastructure.observability.logging import setup_logging
from onboarding_engine.infrastructure.sessions import SessionRegistry
from onboarding_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Onboarding Engine",
        description="KYC/AML onboarding step sequencing and risk scoring service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if registry is None:
        registry = SessionRegistry(
            ComplianceClient(),
            submission_error_message=settings.submission_error_message,
        )
    app.state.session_registry = registry

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
    app.include_router(sessions.router, prefix="/v1", tags=["sessions"])
    app.include_router(risk.router, prefix="/v1", tags=["risk"])

    return app


app = create_app()
