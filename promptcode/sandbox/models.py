"""Data models for remote code execution."""

from dataclasses import dataclass
from typing import Any


@dataclass
class ExecutionRequest:
    """Payload submitted to the remote execution API."""

    script: str
    language: str
    version_index: str

    def to_payload(self, client_id: str, client_secret: str) -> dict[str, str]:
        return {
            "clientId": client_id,
            "clientSecret": client_secret,
            "script": self.script,
            "language": self.language,
            "versionIndex": self.version_index,
        }


@dataclass(frozen=True)
class ExecutionResult:
    """Result of a remote code execution."""

    stdout: str = ""
    stderr: str = ""
    status_code: int = 0
    memory_used: str = ""
    cpu_time: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status_code == 0

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "ExecutionResult":
        """Build a complete result from a possibly partial response body."""
        return cls(
            stdout=_as_text(data.get("output")),
            stderr=_as_text(data.get("error")),
            status_code=_as_int(data.get("statusCode")),
            memory_used=_as_text(data.get("memory")),
            cpu_time=_as_text(data.get("cpuTime")),
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
