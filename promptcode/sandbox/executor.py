"""
Remote code execution client.

Submits generated source to the JDoodle execute API and normalizes the
response into an ``ExecutionResult``. A program that compiles or runs with a
nonzero status is reported as data; only transport/HTTP failures raise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from structlog import get_logger

from promptcode.errors import ExecutionError, UnsupportedLanguage
from promptcode.languages import get_language
from promptcode.sandbox.models import ExecutionRequest, ExecutionResult

if TYPE_CHECKING:
    from promptcode.config import JDoodleConfig

logger = get_logger()


class CodeExecutor:
    """
    Thin async client for the remote execution sandbox.

    Usage::

        executor = CodeExecutor(config)
        result = await executor.execute("print(1 + 1)", "python")
        await executor.close()
    """

    def __init__(
        self,
        config: "JDoodleConfig",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()
        logger.info("Execution client closed")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(self, source: str, language: str) -> ExecutionResult:
        """
        Run *source* remotely.

        Raises:
            UnsupportedLanguage: *language* has no execution mapping.
            ExecutionError: the upstream could not be reached or answered
                with a non-2xx status or an unreadable body.
        """
        config = get_language(language)
        if config is None:
            raise UnsupportedLanguage(f"Unsupported language: {language}")

        request = ExecutionRequest(
            script=source,
            language=config.executor_language,
            version_index=config.version_index,
        )

        try:
            response = await self._client.post(
                self._config.url,
                json=request.to_payload(self._config.client_id, self._config.client_secret),
                timeout=self._config.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Execution API error", language=language, error=str(exc))
            raise ExecutionError(f"Compilation failed: {exc}") from exc

        if not isinstance(data, dict):
            raise ExecutionError("Compilation failed: unexpected response from execution API")

        result = ExecutionResult.from_response(data)

        logger.info(
            "Code execution finished",
            language=language,
            status_code=result.status_code,
            cpu_time=result.cpu_time,
            memory=result.memory_used,
        )

        return result
