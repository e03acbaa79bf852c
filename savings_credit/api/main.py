"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from savings_credit.api.dependencies import get_request_id
from savings_credit.api.middleware import RequestIDMiddleware, MetricsMiddleware
from savings_credit.api.v1 import credit, notifications, savings
from savings_credit.domain.exceptions import DomainException
from savings_credit.infrastructure.observability.logging import setup_logging
from savings_credit.config import settings

# Setup structured logging
setup_logging(settings.log_level)


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Map domain errors to their HTTP status"""
    request_id = get_request_id(request)
    if exc.status_code >= 500:
        logging.error(f"Domain failure: {exc.message}", extra={"request_id": request_id})
    else:
        logging.warning(f"Rejected request: {exc.message}", extra={"request_id": request_id})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Savings & Credit API",
        description="Savings accounts, ledger transactions and credit requests",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(savings.router, prefix="/v1", tags=["savings"])
    app.include_router(credit.router, prefix="/v1", tags=["credit"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])

    return app


app = create_app()
