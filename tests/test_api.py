from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from openai import APITimeoutError

from promptcode.config import GeminiConfig, PipelineConfig, RateLimitConfig, Settings, StorageConfig
from promptcode.errors import ExecutionError
from promptcode.generation.generator import CodeGenerator
from promptcode.main import create_app
from promptcode.sandbox.models import ExecutionResult
from promptcode.services.rate_limiter import ClientRateLimiter
from promptcode.storage.store import TempFileStore

from .conftest import FakeExecutor, FakeGenerator

ADD_QUERY = {"query": "Write a function that adds two numbers", "language": "python"}


def test_generate_code_success(client: TestClient, store_dir: Path) -> None:
    response = client.post("/api/generate-code", json=ADD_QUERY)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["code"] == "def add(a,b): return a+b"
    assert data["compilation"] == {
        "output": "",
        "error": "",
        "statusCode": 0,
        "memory": "3MB",
        "cpuTime": "0.02s",
    }
    assert data["fileName"] == f"{data['fileId']}.py"
    assert data["downloadUrl"] == f"/api/download/{data['fileId']}.py"
    assert (store_dir / data["fileName"]).read_text(encoding="utf-8") == data["code"]


def test_generate_code_trims_and_passes_request_upstream(
    client: TestClient, generator: FakeGenerator, executor: FakeExecutor
) -> None:
    generator.reply = "\n\n  print('hi')  \n"

    response = client.post("/api/generate-code", json={"query": "  say hi  ", "language": "python"})

    assert response.status_code == 200
    assert response.json()["data"]["code"] == "print('hi')"
    assert generator.calls == [("say hi", "python")]
    assert executor.calls == [("print('hi')", "python")]


def test_generate_code_strips_markdown_fence(client: TestClient, generator: FakeGenerator) -> None:
    generator.reply = "```java\npublic class Main {}\n```"

    response = client.post("/api/generate-code", json={"query": "empty class", "language": "java"})

    data = response.json()["data"]
    assert data["code"] == "public class Main {}"
    assert data["downloadUrl"].endswith(".java")


def test_generate_code_reports_failing_program_as_data(client: TestClient, executor: FakeExecutor) -> None:
    executor.result = ExecutionResult(stderr="SyntaxError: invalid syntax", status_code=1)

    response = client.post("/api/generate-code", json=ADD_QUERY)

    assert response.status_code == 200
    compilation = response.json()["data"]["compilation"]
    assert compilation["statusCode"] == 1
    assert compilation["error"] == "SyntaxError: invalid syntax"
    assert compilation["memory"] == ""
    assert compilation["cpuTime"] == ""


@pytest.mark.parametrize("language", ["ruby", "javascript", "Python", "", "c"])
def test_unsupported_language_is_invalid_input(
    client: TestClient, generator: FakeGenerator, executor: FakeExecutor, language: str
) -> None:
    response = client.post("/api/generate-code", json={"query": "hello", "language": language})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid input parameters"
    assert [d["field"] for d in body["details"]] == ["language"]
    assert generator.calls == []
    assert executor.calls == []


@pytest.mark.parametrize("query", ["", "   ", "\x00\x01\x02", "x" * 5001])
def test_query_length_is_validated(
    client: TestClient, generator: FakeGenerator, executor: FakeExecutor, query: str
) -> None:
    response = client.post("/api/generate-code", json={"query": query, "language": "cpp"})

    assert response.status_code == 400
    assert [d["field"] for d in response.json()["details"]] == ["query"]
    assert generator.calls == []
    assert executor.calls == []


def test_query_at_max_length_is_accepted(client: TestClient) -> None:
    response = client.post("/api/generate-code", json={"query": "x" * 5000, "language": "cpp"})

    assert response.status_code == 200


def test_every_violated_field_is_listed(client: TestClient) -> None:
    response = client.post("/api/generate-code", json={"query": "", "language": "cobol"})

    assert response.status_code == 400
    fields = sorted(d["field"] for d in response.json()["details"])
    assert fields == ["language", "query"]


def test_missing_body_is_invalid_input(client: TestClient) -> None:
    response = client.post("/api/generate-code")

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_generation_timeout_creates_no_file(store: TempFileStore, store_dir: Path, settings: Settings) -> None:
    openai_client = MagicMock()
    openai_client.chat.completions.create = AsyncMock(
        side_effect=APITimeoutError(request=httpx.Request("POST", "https://llm.test/chat"))
    )
    executor = FakeExecutor()
    app = create_app(
        settings,
        generator=CodeGenerator(GeminiConfig(), client=openai_client),
        executor=executor,
        store=store,
    )

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/generate-code", json=ADD_QUERY)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "Failed to generate code" in body["error"]
    assert list(store_dir.iterdir()) == []
    assert executor.calls == []


def test_execution_failure_hides_code_by_default(
    client: TestClient, executor: FakeExecutor, store_dir: Path
) -> None:
    executor.error = ExecutionError("Compilation failed: connection refused")

    response = client.post("/api/generate-code", json=ADD_QUERY)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Compilation failed: connection refused"}
    # the artifact was persisted before execution was attempted
    assert len(list(store_dir.iterdir())) == 1


def test_execution_failure_can_return_partial_results(
    store: TempFileStore, store_dir: Path, generator: FakeGenerator
) -> None:
    settings = Settings(
        storage=StorageConfig(temp_dir=store_dir),
        rate_limit=RateLimitConfig(enabled=False),
        pipeline=PipelineConfig(return_partial_results=True),
    )
    executor = FakeExecutor(error=ExecutionError("Compilation failed: timed out"))
    app = create_app(settings, generator=generator, executor=executor, store=store)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/generate-code", json=ADD_QUERY)
        body = response.json()
        download = client.get(body["details"]["downloadUrl"])

    assert response.status_code == 500
    assert body["error"] == "Compilation failed: timed out"
    assert body["details"]["code"] == "def add(a,b): return a+b"
    assert body["details"]["fileName"].endswith(".py")
    assert download.content == b"def add(a,b): return a+b"


def test_storage_failure_skips_execution(
    client: TestClient, store_dir: Path, generator: FakeGenerator, executor: FakeExecutor
) -> None:
    store_dir.rmdir()

    response = client.post("/api/generate-code", json=ADD_QUERY)

    assert response.status_code == 500
    assert response.json()["error"].startswith("Failed to save generated code")
    assert generator.calls == [(ADD_QUERY["query"], "python")]
    assert executor.calls == []


def test_unexpected_error_is_internal(client: TestClient, executor: FakeExecutor) -> None:
    executor.error = RuntimeError("secret stack detail")

    response = client.post("/api/generate-code", json=ADD_QUERY)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
    assert "secret stack detail" not in response.text
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


def test_download_is_idempotent(client: TestClient) -> None:
    url = client.post("/api/generate-code", json=ADD_QUERY).json()["data"]["downloadUrl"]

    first = client.get(url)
    second = client.get(url)

    assert first.status_code == 200
    assert first.content == second.content == b"def add(a,b): return a+b"
    assert first.headers["content-type"].startswith("text/x-python")
    assert first.headers["content-disposition"] == f'attachment; filename="{url.rsplit("/", 1)[1]}"'


@pytest.mark.parametrize(
    "file_name, content_type",
    [
        ("a.cpp", "text/x-c++src"),
        ("b.java", "text/x-java-source"),
        ("c.cs", "text/x-csharp"),
        ("notes.xyz", "text/plain"),
    ],
)
def test_download_content_type(client: TestClient, store_dir: Path, file_name: str, content_type: str) -> None:
    (store_dir / file_name).write_text("body")

    response = client.get(f"/api/download/{file_name}")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(content_type)


def test_download_missing_file(client: TestClient) -> None:
    response = client.get("/api/download/does-not-exist.py")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "File not found"}


@pytest.mark.parametrize("path", ["..%2Fsecret.txt", "..%5Csecret.txt", "%2E%2E%5Csecret.txt"])
def test_download_rejects_path_traversal(client: TestClient, store_dir: Path, path: str) -> None:
    (store_dir.parent / "secret.txt").write_text("top secret")

    response = client.get(f"/api/download/{path}")

    assert response.status_code == 404
    assert response.json()["success"] is False
    assert "top secret" not in response.text


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Server is running"
    assert body["timestamp"].endswith("Z")


def test_unknown_endpoint(client: TestClient) -> None:
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Endpoint not found"}


@pytest.mark.parametrize(
    "method, path",
    [("GET", "/api/generate-code"), ("DELETE", "/api/health"), ("PUT", "/api/download/x.py")],
)
def test_wrong_method_is_endpoint_not_found(client: TestClient, method: str, path: str) -> None:
    response = client.request(method, path)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Endpoint not found"}


def test_index_serves_client(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "/api/generate-code" in response.text


def test_security_headers(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


def test_rate_limit(settings: Settings, store: TempFileStore) -> None:
    limiter = ClientRateLimiter(max_requests=2, window_seconds=60)
    app = create_app(
        settings,
        generator=FakeGenerator(),
        executor=FakeExecutor(),
        store=store,
        rate_limiter=limiter,
    )

    with TestClient(app) as client:
        statuses = [client.get("/api/health").status_code for _ in range(3)]
        limited = client.get("/api/health")

    assert statuses == [200, 200, 429]
    assert limited.json() == {
        "success": False,
        "error": "Too many requests from this IP, please try again later.",
    }
    assert 0 < int(limited.headers["retry-after"]) <= 60


def test_rate_limit_does_not_apply_to_client_page(settings: Settings, store: TempFileStore) -> None:
    limiter = ClientRateLimiter(max_requests=1, window_seconds=60)
    app = create_app(
        settings,
        generator=FakeGenerator(),
        executor=FakeExecutor(),
        store=store,
        rate_limiter=limiter,
    )

    with TestClient(app) as client:
        assert client.get("/").status_code == 200
        assert client.get("/").status_code == 200


def test_rate_limit_counts_unmatched_api_paths(settings: Settings, store: TempFileStore) -> None:
    limiter = ClientRateLimiter(max_requests=1, window_seconds=60)
    app = create_app(
        settings,
        generator=FakeGenerator(),
        executor=FakeExecutor(),
        store=store,
        rate_limiter=limiter,
    )

    with TestClient(app) as client:
        statuses = [client.get("/api/nope").status_code for _ in range(3)]
        wrong_method = client.delete("/api/health")

    assert statuses == [404, 429, 429]
    assert wrong_method.status_code == 429
    assert wrong_method.headers["x-content-type-options"] == "nosniff"


def test_rate_limit_is_built_from_settings(settings: Settings, store: TempFileStore) -> None:
    settings.rate_limit = RateLimitConfig(enabled=True, max_requests=1, window_seconds=60)
    app = create_app(settings, generator=FakeGenerator(), executor=FakeExecutor(), store=store)

    with TestClient(app) as client:
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health").status_code == 429
