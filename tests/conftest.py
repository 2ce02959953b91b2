from __future__ import annotations

import sys
from pathlib import Path

import pytest
import respx
from typer.testing import CliRunner


# Ensure the repository-local ``src`` directory is importable when the project is
# not installed as a package.
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

BASE_URL = "https://management.core.windows.net/sub-id"

OPERATION_XML = """<?xml version="1.0" encoding="utf-8"?>
<Operation xmlns="http://schemas.microsoft.com/windowsazure">
  <ID>{id}</ID>
  <Status>{status}</Status>
  <HttpStatusCode>{http_status}</HttpStatusCode>
  {error}
</Operation>
"""


def operation_xml(
    status: str,
    *,
    operation_id: str = "op-1",
    http_status: int = 200,
    code: str = "",
    message: str = "",
) -> bytes:
    error = ""
    if code or message:
        error = f"<Error><Code>{code}</Code><Message>{message}</Message></Error>"
    return OPERATION_XML.format(
        id=operation_id, status=status, http_status=http_status, error=error
    ).encode("utf-8")


def error_xml(code: str, message: str) -> bytes:
    return (
        '<Error xmlns="http://schemas.microsoft.com/windowsazure">'
        f"<Code>{code}</Code><Message>{message}</Message></Error>"
    ).encode("utf-8")


class FakeClock:
    """Deterministic stand-in for ``time.monotonic``/``time.sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def respx_mock():
    with respx.mock(assert_all_called=False) as respx_mgr:
        yield respx_mgr


@pytest.fixture
def fake_clock(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr("azsm.utils.poller.time.monotonic", clock.monotonic)
    monkeypatch.setattr("azsm.utils.poller.time.sleep", clock.sleep)
    return clock


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr("azsm.utils.poller.time.sleep", lambda _: None)


@pytest.fixture
def api():
    from azsm.clients.management import ManagementAPI

    client = ManagementAPI("sub-id", poller_interval=1.0, poller_timeout=60.0)
    yield client
    client.close()


@pytest.fixture
def cli_runner(monkeypatch, tmp_path):
    """Provide a CLI runner with an isolated config directory."""

    monkeypatch.setattr("azsm.config.CONFIG_PATH", str(tmp_path / "config.json"))
    monkeypatch.setenv("AZSM_SUBSCRIPTION_ID", "sub-id")
    monkeypatch.delenv("AZSM_CERTIFICATE", raising=False)
    monkeypatch.delenv("AZSM_LOCATION", raising=False)
    return CliRunner()
