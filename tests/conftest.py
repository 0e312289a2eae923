"""Pytest configuration and shared fixtures for bulk registration tests."""

import io
import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from rich.console import Console

from bwl_bulk_register.client import BlueworksClient
from bwl_bulk_register.config import RunConfig
from bwl_bulk_register.reporting import RunReporter
from bwl_bulk_register.roles import Role

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep BWL_* variables of the developer's shell out of the tests."""
    for name in ("BWL_SERVER", "BWL_DEFAULT_ROLE", "BWL_DEFAULT_ADMIN", "BWL_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def user_list(tmp_path: Path) -> Path:
    return tmp_path / "users.txt"


@pytest.fixture
def make_config(user_list: Path) -> Callable[..., RunConfig]:
    """Factory for run configurations with test credentials."""

    def _make(**overrides) -> RunConfig:
        values = {
            "username": "admin@example.com",
            "password": "s3cret",
            "account": "Acme",
            "user_list_file": user_list,
            "default_role": Role.VIEWER,
            "default_admin": False,
            "check_only": False,
            "server": "https://bwl.test",
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def config(make_config) -> RunConfig:
    return make_config()


@pytest.fixture
def make_client(config: RunConfig) -> Callable[[Handler], BlueworksClient]:
    """Build a client whose requests are answered by *handler*."""

    def _make(handler: Handler, run_config: RunConfig | None = None) -> BlueworksClient:
        return BlueworksClient(run_config or config, transport=httpx.MockTransport(handler))

    return _make


class CapturingReporter(RunReporter):
    """Reporter writing into string buffers."""

    def __init__(self) -> None:
        self.out = io.StringIO()
        self.err = io.StringIO()
        super().__init__(
            Console(file=self.out, width=300, highlight=False),
            Console(file=self.err, width=300, highlight=False),
        )

    @property
    def stdout_lines(self) -> list[str]:
        return self.out.getvalue().splitlines()

    @property
    def stderr_lines(self) -> list[str]:
        return self.err.getvalue().splitlines()


@pytest.fixture
def reporter() -> CapturingReporter:
    return CapturingReporter()


class FakeServer:
    """In-memory Blueworks Live answering Auth and provisioning calls."""

    def __init__(
        self,
        auth_status: int = 200,
        auth_body: dict | None = None,
        rejected: dict[str, str] | None = None,
    ):
        self.auth_status = auth_status
        self.auth_body = auth_body if auth_body is not None else {"result": "authenticated"}
        self.rejected = rejected or {}
        self.requests: list[httpx.Request] = []

    @property
    def provision_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]

    @property
    def auth_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET" and request.url.path == "/api/Auth":
            return httpx.Response(self.auth_status, json=self.auth_body)
        if request.method == "PUT" and request.url.path == "/scr/api/provision/user/":
            body = json.loads(request.content)
            message = self.rejected.get(body["username"])
            if message is not None:
                return httpx.Response(400, json={"message": message})
            echo = dict(body, license=body["license"].upper(), active=True)
            return httpx.Response(200, json=echo)
        return httpx.Response(404)


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def server_factory() -> type[FakeServer]:
    return FakeServer
