from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from promptcode.config import RateLimitConfig, Settings, StorageConfig
from promptcode.main import create_app
from promptcode.sandbox.models import ExecutionResult
from promptcode.storage.store import TempFileStore


class FakeGenerator:
    """Records calls and returns a canned reply (or raises)."""

    def __init__(self, reply: str = "def add(a,b): return a+b", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def generate(self, query: str, language: str) -> str:
        self.calls.append((query, language))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeExecutor:
    def __init__(self, result: ExecutionResult | None = None, error: Exception | None = None):
        self.result = result or ExecutionResult(
            stdout="", stderr="", status_code=0, memory_used="3MB", cpu_time="0.02s"
        )
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def execute(self, source: str, language: str) -> ExecutionResult:
        self.calls.append((source, language))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    path = tmp_path / "store"
    path.mkdir()
    return path


@pytest.fixture
def store(store_dir: Path) -> TempFileStore:
    return TempFileStore(store_dir)


@pytest.fixture
def settings(store_dir: Path) -> Settings:
    return Settings(
        storage=StorageConfig(temp_dir=store_dir),
        rate_limit=RateLimitConfig(enabled=False),
    )


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def app(settings: Settings, generator: FakeGenerator, executor: FakeExecutor, store: TempFileStore) -> FastAPI:
    return create_app(settings, generator=generator, executor=executor, store=store)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, Any, None]:
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
