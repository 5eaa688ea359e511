from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from frp_manager.observability.metrics import get_manager_metrics  # noqa: E402


def _reload_main(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, backend: str, **env: str):
    monkeypatch.setenv("FRP_MANAGER_AUDIT_BACKEND", backend)
    monkeypatch.setenv("FRP_MANAGER_DB_PATH", str(tmp_path / "frp-test.db"))
    monkeypatch.setenv("FRP_MANAGER_LOG_DIR", str(tmp_path / "logs"))
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    if "frp_manager.main" in sys.modules:
        module = importlib.reload(sys.modules["frp_manager.main"])
    else:
        module = importlib.import_module("frp_manager.main")
    get_manager_metrics().reset()
    return module


@pytest.fixture
def main_module(tmp_path, monkeypatch: pytest.MonkeyPatch):
    return _reload_main(tmp_path, monkeypatch, "sqlite")


@pytest.fixture
def isolated_client(main_module):
    with TestClient(main_module.app) as client:
        yield client
    main_module.app.dependency_overrides.clear()


@pytest.fixture(params=["sqlite", "file", "memory"])
def backend_client(request, tmp_path, monkeypatch: pytest.MonkeyPatch):
    module = _reload_main(tmp_path, monkeypatch, request.param)
    with TestClient(module.app) as client:
        yield client


@pytest.fixture
def json_errors_client(tmp_path, monkeypatch: pytest.MonkeyPatch):
    module = _reload_main(tmp_path, monkeypatch, "memory", FRP_MANAGER_JSON_ERRORS="true")
    with TestClient(module.app) as client:
        yield client


@pytest.fixture
def docs_client(tmp_path, monkeypatch: pytest.MonkeyPatch):
    module = _reload_main(tmp_path, monkeypatch, "memory", FRP_MANAGER_ENABLE_DOCS="true")
    with TestClient(module.app) as client:
        yield client
