import pytest

from frp_manager.config import load_settings


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in (
        "FRP_MANAGER_HOST",
        "FRP_MANAGER_PORT",
        "FRP_MANAGER_AUDIT_BACKEND",
        "FRP_MANAGER_DB_PATH",
        "FRP_MANAGER_LOG_DIR",
        "FRP_MANAGER_REQUEST_TIMEOUT_SECONDS",
        "FRP_MANAGER_JSON_ERRORS",
        "FRP_MANAGER_ENABLE_DOCS",
        "FRP_MANAGER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.host == "127.0.0.1"
    assert settings.port == 7200
    assert settings.audit_backend == "sqlite"
    assert settings.request_timeout_seconds == 10.0
    assert settings.json_errors is False
    assert settings.enable_docs is False
    assert settings.log_level == "INFO"
    assert (tmp_path / ".frp-manager").is_dir()


def test_file_backend_creates_log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("FRP_MANAGER_AUDIT_BACKEND", "File")
    monkeypatch.setenv("FRP_MANAGER_LOG_DIR", str(tmp_path / "audit"))
    monkeypatch.setenv("FRP_MANAGER_JSON_ERRORS", "yes")

    settings = load_settings()

    assert settings.audit_backend == "file"
    assert settings.json_errors is True
    assert (tmp_path / "audit").is_dir()


@pytest.mark.parametrize(
    "name, value",
    [
        ("FRP_MANAGER_AUDIT_BACKEND", "postgres"),
        ("FRP_MANAGER_PORT", "eighty"),
        ("FRP_MANAGER_REQUEST_TIMEOUT_SECONDS", "0"),
        ("FRP_MANAGER_REQUEST_TIMEOUT_SECONDS", "soon"),
    ],
)
def test_invalid_values_raise(tmp_path, monkeypatch, name, value):
    monkeypatch.setenv("FRP_MANAGER_AUDIT_BACKEND", "memory")
    monkeypatch.setenv(name, value)

    with pytest.raises(RuntimeError, match=name):
        load_settings()
