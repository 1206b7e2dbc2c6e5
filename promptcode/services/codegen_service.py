"""
Code generation service - the generate → persist → execute orchestration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol
from uuid import uuid4

from structlog import get_logger

from promptcode.errors import AppError, GenerationError
from promptcode.generation.prompt import strip_code_fences
from promptcode.models.schemas import (
    CodeGenerationResult,
    CompilationResult,
    GenerationRequest,
)
from promptcode.pipeline import Pipeline, PipelineContext
from promptcode.sandbox.models import ExecutionResult
from promptcode.storage.store import TempFileStore

logger = get_logger()

DOWNLOAD_PREFIX = "/api/download/"


class Generator(Protocol):
    async def generate(self, query: str, language: str) -> str: ...


class Executor(Protocol):
    async def execute(self, source: str, language: str) -> ExecutionResult: ...


class CodeGenerationService:
    """
    Runs one request through the pipeline.

    Steps are strictly sequential and never retried; the first failing step
    ends the request with its error.
    """

    def __init__(
        self,
        generator: Generator,
        executor: Executor,
        store: TempFileStore,
        *,
        return_partial_results: bool = False,
    ):
        self._generator = generator
        self._executor = executor
        self._store = store
        self._return_partial_results = return_partial_results

        self._pipeline = (
            Pipeline()
            .then("generate", self._generate)
            .then("persist", self._persist)
            .then("execute", self._execute)
        )

    async def generate(self, request: GenerationRequest) -> CodeGenerationResult:
        """
        Generate, store and run code for *request*.

        Raises:
            GenerationError, StorageError, ExecutionError: from the failed step.
        """
        file_id = str(uuid4())
        context = PipelineContext(
            request_id=file_id,
            metadata={"query": request.query, "language": request.language},
        )

        logger.info(
            f"Generating {request.language} code for query: {request.query[:100]}...",
            request_id=file_id,
        )

        outcome = await self._pipeline.run(context)

        if not outcome.ok and outcome.failed_stage == "execute":
            self._attach_partial_results(outcome.error, context)

        context = outcome.unwrap()

        code: str = context.data["generate"]
        path: Path = context.data["persist"]
        execution: ExecutionResult = context.data["execute"]

        return CodeGenerationResult(
            file_id=file_id,
            file_name=path.name,
            code=code,
            compilation=CompilationResult.from_execution(execution),
            download_url=f"{DOWNLOAD_PREFIX}{path.name}",
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _generate(self, context: PipelineContext) -> str:
        raw = await self._generator.generate(
            context.metadata["query"], context.metadata["language"]
        )
        code = strip_code_fences(raw)
        if not code:
            raise GenerationError("Failed to generate code: model returned an empty code block")
        return code

    async def _persist(self, context: PipelineContext) -> Path:
        return await self._store.put(
            context.data["generate"], context.metadata["language"], context.request_id
        )

    async def _execute(self, context: PipelineContext) -> ExecutionResult:
        logger.info(
            f"Compiling {context.metadata['language']} code...",
            request_id=context.request_id,
        )
        return await self._executor.execute(
            context.data["generate"], context.metadata["language"]
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _attach_partial_results(
        self, error: AppError | None, context: PipelineContext
    ) -> None:
        if not self._return_partial_results or error is None:
            return

        file_name = context.data["persist"].name
        error.details = {
            "fileId": context.request_id,
            "fileName": file_name,
            "code": context.data["generate"],
            "downloadUrl": f"{DOWNLOAD_PREFIX}{file_name}",
        }
