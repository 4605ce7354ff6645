"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cardwise.api.dependencies import get_request_id
from cardwise.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cardwise.api.v1 import cards, installments, limits, reminders, subscriptions
from cardwise.config import settings
from cardwise.domain.exceptions import DomainException
from cardwise.infrastructure.database.models import Base
from cardwise.infrastructure.database.session import engine
from cardwise.infrastructure.observability.logging import setup_logging
from cardwise.infrastructure.observability.metrics import domain_errors_counter

setup_logging(settings.log_level)

V1_ROUTERS = (
    (cards.router, "cards"),
    (subscriptions.router, "subscriptions"),
    (installments.router, "installments"),
    (reminders.router, "reminders"),
    (limits.router, "limits"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Local SQLite stores have no migration step
    Base.metadata.create_all(bind=engine)
    logging.info("Card store ready", extra={"database_url": settings.database_url.split("@")[-1]})
    yield


def create_app() -> FastAPI:
    """Build the Cardwise API: card ledger, schedules, reminders and limit views"""
    app = FastAPI(
        title="Cardwise",
        description="Credit card obligation scheduling and shared-limit aggregation",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Request ID runs first so metrics and handlers can see it
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(DomainException)
    async def domain_error_handler(request: Request, exc: DomainException):
        domain_errors_counter.labels(error=type(exc).__name__).inc()
        logging.warning(f"Unhandled core error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in V1_ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
