"""Services module."""

from .codegen_service import CodeGenerationService
from .rate_limiter import ClientRateLimiter
from .runtime import build_lifespan, enforce_rate_limit, get_codegen_service, get_store
from .sweeper import FileSweeper

__all__ = [
    "CodeGenerationService",
    "ClientRateLimiter",
    "FileSweeper",
    "build_lifespan",
    "enforce_rate_limit",
    "get_codegen_service",
    "get_store",
]
