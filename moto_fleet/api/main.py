"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from moto_fleet.api.middleware import RequestIDMiddleware, MetricsMiddleware
from moto_fleet.api.v1 import vehicles, yards, clients
from moto_fleet.domain.risk import MaintenanceRiskScorer
from moto_fleet.infrastructure.database.models import Base
from moto_fleet.infrastructure.database.session import engine
from moto_fleet.infrastructure.observability.logging import setup_logging
from moto_fleet.services.locks import YardLockRegistry
from moto_fleet.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)
    yield


def create_app(risk_scorer: Optional[MaintenanceRiskScorer] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Moto Fleet Service",
        description="Yard capacity allocation and vehicle maintenance risk service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Shared for the process lifetime: the scorer trains its model once here
    app.state.risk_scorer = risk_scorer or MaintenanceRiskScorer(use_model=settings.risk_model_enabled)
    app.state.yard_locks = YardLockRegistry()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "risk_model": "trained" if app.state.risk_scorer.model_available else "rules",
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(vehicles.router, prefix="/v1", tags=["vehicles"])
    app.include_router(yards.router, prefix="/v1", tags=["yards"])
    app.include_router(clients.router, prefix="/v1", tags=["clients"])

    return app


app = create_app()
