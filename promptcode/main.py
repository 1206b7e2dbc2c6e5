"""
promptcode - Main Application Entry Point.

Generates source code from a natural-language request with a hosted language
model, runs it on a remote execution sandbox and returns both to the browser.
"""

import time
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from promptcode.api import download_router, generate_router, health_router
from promptcode.config import Settings, get_settings
from promptcode.errors import AppError, InternalError, InvalidInput, RateLimited
from promptcode.models.schemas import ErrorResponse
from promptcode.services.codegen_service import Executor, Generator
from promptcode.services.rate_limiter import ClientRateLimiter
from promptcode.services.runtime import build_lifespan, enforce_rate_limit
from promptcode.storage.store import TempFileStore

API_PREFIX = "/api"
STATIC_DIR = Path(__file__).resolve().parent / "static"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer() if settings.environment == "production"
            else structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            0 if settings.debug else 20
        )
    )


logger = structlog.get_logger()


def _error_response(status_code: int, error: str, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _app_error_response(exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}
    return _error_response(exc.status_code, exc.message, exc.details, headers)


def _unhandled_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )
    error = InternalError("Internal server error")
    return _error_response(error.status_code, error.message)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Domain errors carry their own status code."""
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                path=request.url.path,
                code=exc.code,
                error=exc.message
            )
        return _app_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Render validation failures as one entry per violated field."""
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body") or "body",
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        error = InvalidInput("Invalid input parameters", details)
        return _error_response(error.status_code, error.message, error.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # No route for this path and method
        if exc.status_code in (404, 405):
            return _error_response(404, "Endpoint not found")
        return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler."""
        return _unhandled_error_response(request, exc)


def create_app(
    settings: Settings | None = None,
    *,
    generator: Generator | None = None,
    executor: Executor | None = None,
    store: TempFileStore | None = None,
    rate_limiter: ClientRateLimiter | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Upstream clients, the store and the rate limiter can be injected; anything
    left out is built from *settings* when the application starts.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="""
Generate, store and run source code from a natural-language description.

## Usage

1. `POST /api/generate-code` with `{query, language}`
2. Read the generated code and execution result from the response
3. Download the stored file with `GET /api/download/{fileName}`
        """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=build_lifespan(
            settings,
            generator=generator,
            executor=executor,
            store=store,
            rate_limiter=rate_limiter,
        )
    )

    @app.middleware("http")
    async def api_rate_limit(request: Request, call_next):
        if request.url.path.startswith(f"{API_PREFIX}/"):
            try:
                enforce_rate_limit(request)
            except RateLimited as exc:
                return _app_error_response(exc)
        return await call_next(request)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            response = _unhandled_error_response(request, exc)
        response.headers.update(SECURITY_HEADERS)
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            client=request.client.host if request.client else None,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2)
        )
        return response

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # Include routers
    app.include_router(generate_router, prefix=API_PREFIX)
    app.include_router(download_router, prefix=API_PREFIX)
    app.include_router(health_router, prefix=API_PREFIX)

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        """Serve the browser client."""
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "promptcode.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.debug
    )
