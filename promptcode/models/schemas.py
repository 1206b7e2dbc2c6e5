"""
Request/response schemas for the promptcode API.
"""

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from promptcode.languages import Language
from promptcode.sandbox.models import ExecutionResult

MAX_QUERY_LENGTH = 5000

# C0 controls except tab, newline and carriage return, plus DEL
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# API Request/Response Models

class GenerationRequest(BaseModel):
    """Code generation request."""

    query: str = Field(
        min_length=1,
        max_length=MAX_QUERY_LENGTH,
        description="Natural-language description of the program"
    )
    language: Language = Field(description="Target language")

    @field_validator("query", mode="before")
    @classmethod
    def clean_query(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _CONTROL_CHARS.sub("", v).strip()
        return v


class CompilationResult(CamelModel):
    """Execution outcome as reported by the remote sandbox."""

    output: str = Field(default="", description="Program standard output")
    error: str = Field(default="", description="Program/compiler error text")
    status_code: int = Field(default=0, description="0 on success, nonzero on failure")
    memory: str = Field(default="", description="Memory used")
    cpu_time: str = Field(default="", description="CPU time used")

    @classmethod
    def from_execution(cls, result: ExecutionResult) -> "CompilationResult":
        return cls(
            output=result.stdout,
            error=result.stderr,
            status_code=result.status_code,
            memory=result.memory_used,
            cpu_time=result.cpu_time,
        )


class CodeGenerationResult(CamelModel):
    """Generated artifact plus its execution result."""

    file_id: str = Field(description="Artifact identifier")
    file_name: str = Field(description="Stored file name")
    code: str = Field(description="Generated source code")
    compilation: CompilationResult = Field(description="Execution result")
    download_url: str = Field(description="Relative URL to download the source file")


class GenerateCodeResponse(BaseModel):
    """Successful code generation envelope."""

    success: bool = True
    data: CodeGenerationResult


class HealthResponse(BaseModel):
    """Health check response."""

    success: bool = True
    message: str = "Server is running"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str = Field(description="Error message")
    details: Any = Field(default=None)
