"""
Component wiring, lifecycle management and dependency providers.

Every stateful component (store, upstream clients, rate limiter, sweeper) is
constructed once in the application lifespan and kept on ``app.state``;
request handlers receive them through ``Depends``.
"""

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import AsyncGenerator, Callable

from fastapi import FastAPI, Request
from structlog import get_logger

from promptcode.config import Settings
from promptcode.errors import RateLimited
from promptcode.generation.generator import CodeGenerator
from promptcode.sandbox.executor import CodeExecutor
from promptcode.services.codegen_service import (
    CodeGenerationService,
    Executor,
    Generator,
)
from promptcode.services.rate_limiter import RATE_LIMIT_MESSAGE, ClientRateLimiter
from promptcode.services.sweeper import FileSweeper
from promptcode.storage.store import TempFileStore

logger = get_logger()


Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


def build_lifespan(
    settings: Settings,
    *,
    generator: Generator | None = None,
    executor: Executor | None = None,
    store: TempFileStore | None = None,
    rate_limiter: ClientRateLimiter | None = None,
) -> Lifespan:
    """
    Create the lifespan context for *settings*.

    Components passed in are used as-is and not closed on shutdown; missing
    ones are built from *settings*.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing components...")

        file_store = store or TempFileStore(settings.storage.temp_dir)
        await file_store.ensure_directory()

        owned_generator = CodeGenerator(settings.gemini) if generator is None else None
        owned_executor = CodeExecutor(settings.jdoodle) if executor is None else None

        limiter = rate_limiter
        if limiter is None and settings.rate_limit.enabled:
            limiter = ClientRateLimiter(
                max_requests=settings.rate_limit.max_requests,
                window_seconds=settings.rate_limit.window_seconds,
                storage_uri=settings.rate_limit.storage_uri,
            )

        app.state.store = file_store
        app.state.rate_limiter = limiter
        app.state.codegen_service = CodeGenerationService(
            generator or owned_generator,
            executor or owned_executor,
            file_store,
            return_partial_results=settings.pipeline.return_partial_results,
        )

        sweeper = FileSweeper(
            file_store,
            max_age_seconds=settings.storage.max_age_seconds,
            interval_seconds=settings.storage.sweep_interval_seconds,
        )
        app.state.sweeper = sweeper
        await sweeper.start()

        logger.info("Components started", environment=settings.environment)

        try:
            yield
        finally:
            logger.info("Shutting down components...")
            await sweeper.stop()
            if owned_executor is not None:
                await owned_executor.close()
            if owned_generator is not None:
                await owned_generator.close()
            logger.info("Components stopped")

    return lifespan


# ------------------------------------------------------------------
# Dependency providers
# ------------------------------------------------------------------

def get_codegen_service(request: Request) -> CodeGenerationService:
    """Get the orchestration service for dependency injection."""
    service = getattr(request.app.state, "codegen_service", None)
    if service is None:
        raise RuntimeError("Components not initialized. Use the application lifespan.")
    return service


def get_store(request: Request) -> TempFileStore:
    """Get the temp file store for dependency injection."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Components not initialized. Use the application lifespan.")
    return store


def enforce_rate_limit(request: Request) -> None:
    """Count *request* against its client; raise RateLimited once over the limit."""
    limiter: ClientRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    client_ip = request.client.host if request.client else "unknown"
    if not limiter.hit(client_ip):
        logger.warning("Rate limit exceeded", client=client_ip, path=request.url.path)
        raise RateLimited(RATE_LIMIT_MESSAGE, retry_after=limiter.retry_after(client_ip))
