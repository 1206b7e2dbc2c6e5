"""
Linear stage pipeline.

Stages run strictly in order. Each stage's return value is stored on the
context under the stage name; a stage raising an ``AppError`` ends the run
with a failure outcome and later stages never start.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from structlog import get_logger

from promptcode.errors import AppError

logger = get_logger()


class PipelineStatus(str, Enum):
    """Pipeline processing status."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineContext:
    """Context passed through the pipeline."""

    request_id: str
    data: dict[str, Any] = field(default_factory=dict)
    status: PipelineStatus = PipelineStatus.PENDING
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    # Processing history
    history: list[dict[str, Any]] = field(default_factory=list)

    def add_history(self, stage: str, duration_ms: float, error: str | None = None) -> None:
        """Add a processing history entry."""
        self.history.append({
            "stage": stage,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "duration_ms": duration_ms,
            "error": error,
        })


@dataclass
class Outcome:
    """Result of a pipeline run."""

    ok: bool
    context: PipelineContext
    failed_stage: str | None = None
    error: AppError | None = None

    def unwrap(self) -> PipelineContext:
        """Return the context, raising the stage error on failure."""
        if not self.ok:
            if self.error is None:
                raise RuntimeError("Failed outcome without an error")
            raise self.error
        return self.context


Stage = Callable[[PipelineContext], Awaitable[Any]]


class Pipeline:
    """
    Ordered chain of named async stages.

    Usage::

        outcome = await (
            Pipeline()
            .then("generate", generate)
            .then("persist", persist)
            .run(context)
        )
    """

    def __init__(self):
        self._stages: list[tuple[str, Stage]] = []

    def then(self, name: str, stage: Stage) -> "Pipeline":
        """Append a stage."""
        self._stages.append((name, stage))
        return self

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _ in self._stages]

    async def run(self, context: PipelineContext) -> Outcome:
        """Execute stages until one fails or all complete."""
        context.status = PipelineStatus.PROCESSING

        for name, stage in self._stages:
            logger.debug("Pipeline stage started", request_id=context.request_id, stage=name)
            start_time = time.perf_counter()
            try:
                context.data[name] = await stage(context)
            except AppError as e:
                duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
                context.add_history(name, duration_ms, error=e.message)
                context.status = PipelineStatus.FAILED
                context.error = e.message
                logger.warning(
                    "Pipeline stage failed",
                    request_id=context.request_id,
                    stage=name,
                    error=e.message,
                    duration_ms=duration_ms
                )
                return Outcome(ok=False, context=context, failed_stage=name, error=e)

            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            context.add_history(name, duration_ms)
            logger.debug(
                "Pipeline stage completed",
                request_id=context.request_id,
                stage=name,
                duration_ms=duration_ms
            )

        context.status = PipelineStatus.COMPLETED
        context.completed_at = datetime.now(timezone.utc)
        return Outcome(ok=True, context=context)
