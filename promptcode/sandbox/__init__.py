"""Remote code execution sandbox client."""

from promptcode.sandbox.executor import CodeExecutor
from promptcode.sandbox.models import ExecutionRequest, ExecutionResult

__all__ = ["CodeExecutor", "ExecutionRequest", "ExecutionResult"]
