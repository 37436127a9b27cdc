"""Jobly API service.

Companies post jobs, users apply to them. Everything is served under
`/api/v1` from one PostgreSQL database.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.api.routes.companies import router as companies_router
from app.api.routes.health import router as health_router
from app.api.routes.jobs import router as jobs_router
from app.api.routes.monitoring import router as monitoring_router
from app.api.routes.users import router as users_router
from app.core.auth import close_async_http_client
from app.core.config import AppEnvironment, Settings, get_settings
from app.core.database import reset_engine
from app.core.errors import JoblyError, ValidationError, get_status_code
from app.core.logging import setup_logging
from app.core.tracing import (
    REQUEST_ID_HEADER,
    TRACEPARENT_HEADER,
    bind_request_context,
    clear_request_context,
)

logger = structlog.get_logger(__name__)


def _error_body(code: str, message: str, errors: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": message, "code": code}
    if errors:
        body["errors"] = errors
    return body


def _request_fields(request: Request) -> dict[str, str]:
    return {"method": request.method, "path": request.url.path}


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=_error_body("JOBLY_INTERNAL_ERROR", "Internal server error"),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings = get_settings()
    setup_logging()
    logger.info(
        "Starting Jobly API",
        env=settings.app.env.value,
        version=settings.app.version,
        port=settings.server.port,
    )

    yield

    await close_async_http_client()
    await reset_engine()
    logger.info("Jobly API stopped")


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    max_body = settings.security.max_request_size_bytes

    # Middleware added later wraps middleware added earlier.
    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > max_body:
            logger.warning(
                "Rejected oversized request body",
                **_request_fields(request),
                content_length=int(declared),
                limit=max_body,
            )
            return JSONResponse(
                status_code=413,
                content=_error_body("JOBLY_PAYLOAD_TOO_LARGE", "Request payload too large"),
            )
        return await call_next(request)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        """Correlate logs and outbound calls with the caller's X-Request-ID.

        Unhandled errors are answered here so the 500 carries the header too.
        """
        request_id = bind_request_context(
            request.headers.get(REQUEST_ID_HEADER),
            request.headers.get(TRACEPARENT_HEADER),
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled exception", **_request_fields(request))
            response = _internal_error()
        finally:
            clear_request_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_allowed_origins,
        allow_credentials=settings.security.cors_allow_credentials,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
        expose_headers=[REQUEST_ID_HEADER],
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(JoblyError)
    async def jobly_error_handler(request: Request, exc: JoblyError) -> JSONResponse:
        status_code = get_status_code(exc)
        log = logger.error if status_code >= 500 else logger.info
        log("Request failed", **_request_fields(request), status_code=status_code, code=exc.code)
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Schema violations are bad requests, reported per field."""
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        logger.info("Request rejected by schema", **_request_fields(request), errors=errors)
        return JSONResponse(
            status_code=ValidationError.status_code,
            content=_error_body(ValidationError.code, "Invalid request", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception", **_request_fields(request))
        return _internal_error()


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Export traces over OTLP when an endpoint is configured."""
    if not settings.observability.otlp_endpoint:
        return

    provider = TracerProvider(
        resource=Resource(attributes={SERVICE_NAME: settings.observability.service_name})
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.observability.otlp_endpoint,
                insecure=settings.observability.otlp_insecure,
            )
        )
    )
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)


def create_app() -> FastAPI:
    settings = get_settings()
    expose_docs = settings.app.env != AppEnvironment.PROD

    app = FastAPI(
        title="Jobly API",
        description="Companies, jobs, users and job applications.",
        version=settings.app.version,
        lifespan=lifespan,
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
        openapi_url="/openapi.json" if expose_docs else None,
    )

    for router in (
        health_router,
        monitoring_router,
        companies_router,
        jobs_router,
        users_router,
    ):
        app.include_router(router, prefix=settings.app.api_prefix)

    _register_middleware(app, settings)
    _register_exception_handlers(app)
    setup_telemetry(app, settings)
    return app


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()
    local = settings.app.env == AppEnvironment.LOCAL

    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=local,
        workers=1 if local else settings.server.workers,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    run()
