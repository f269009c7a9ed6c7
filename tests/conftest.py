"""Shared fixtures for reqcraft tests."""

import json
import os

import pytest
from click.testing import CliRunner

from reqcraft import workspace
from reqcraft.executor import RequestResult
from reqcraft.models import Variable, VariableType


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a temporary project directory and cd into it."""
    original = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(original)


@pytest.fixture
def global_reqcraft_dir(tmp_path, monkeypatch):
    """Override the global ~/.reqcraft directory to a temp location."""
    fake_global = tmp_path / "fake_home" / ".reqcraft"
    fake_global.mkdir(parents=True)
    monkeypatch.setattr(workspace, "GLOBAL_DIR", fake_global)
    monkeypatch.setattr(workspace, "GLOBAL_CONFIG", fake_global / "config.yaml")
    return fake_global


@pytest.fixture(autouse=True)
def isolate_history(tmp_path, monkeypatch):
    """Prevent tests from polluting ~/.reqcraft_history.json."""
    monkeypatch.setattr(workspace, "HISTORY_FILE", tmp_path / "test_history.json")


def var(key, value, type=VariableType.AUTO, enabled=True):
    return Variable(key=key, value=value, enabled=enabled, type=type)


def make_request_result(
    status_code=200,
    body=None,
    headers=None,
    elapsed_ms=42.0,
    error=None,
    content_type="application/json",
):
    """Factory for mock RequestResult objects."""
    r = RequestResult()
    r.status_code = status_code
    r.status_text = "OK" if status_code == 200 else ""
    r.headers = headers or {"Content-Type": content_type}
    r.content_type = content_type
    r.kind = "json" if "json" in content_type else "text"
    r.body = body
    r.elapsed_ms = elapsed_ms
    r.error = error
    r.body_bytes = (
        json.dumps(body).encode() if isinstance(body, dict | list) else str(body or "").encode()
    )
    return r
