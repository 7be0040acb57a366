"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from zakat_admin.api.middleware import RequestIDMiddleware, MetricsMiddleware
from zakat_admin.api.v1 import applications, committee, distribution
from zakat_admin.infrastructure.database.session import init_db
from zakat_admin.infrastructure.observability.logging import setup_logging
from zakat_admin.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Zakat Admin Gateway",
        description="Committee approval, distribution timeline and recurring payment service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
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
    app.include_router(distribution.router, prefix="/v1", tags=["distribution"])
    app.include_router(committee.router, prefix="/v1", tags=["committee"])
    app.include_router(applications.router, prefix="/v1", tags=["applications"])

    return app


app = create_app()
