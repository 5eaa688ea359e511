from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

AUDIT_BACKENDS = ("sqlite", "file", "memory")


@dataclass(slots=True)
class Settings:
    host: str
    port: int
    audit_backend: str
    db_path: Path
    log_dir: Path
    request_timeout_seconds: float
    json_errors: bool
    enable_docs: bool
    log_level: str


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _parse_timeout(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    audit_backend = os.getenv("FRP_MANAGER_AUDIT_BACKEND", "sqlite").strip().lower()
    if audit_backend not in AUDIT_BACKENDS:
        raise RuntimeError(
            f"FRP_MANAGER_AUDIT_BACKEND must be one of {', '.join(AUDIT_BACKENDS)}, got {audit_backend!r}"
        )

    db_path = Path(os.getenv("FRP_MANAGER_DB_PATH", ".frp-manager/frp.db"))
    log_dir = Path(os.getenv("FRP_MANAGER_LOG_DIR", ".frp-manager/logs"))
    if audit_backend == "sqlite":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    elif audit_backend == "file":
        log_dir.mkdir(parents=True, exist_ok=True)

    return Settings(
        host=os.getenv("FRP_MANAGER_HOST", "127.0.0.1").strip(),
        port=_parse_int("FRP_MANAGER_PORT", 7200),
        audit_backend=audit_backend,
        db_path=db_path,
        log_dir=log_dir,
        request_timeout_seconds=_parse_timeout("FRP_MANAGER_REQUEST_TIMEOUT_SECONDS", 10.0),
        json_errors=_parse_bool(os.getenv("FRP_MANAGER_JSON_ERRORS"), False),
        enable_docs=_parse_bool(os.getenv("FRP_MANAGER_ENABLE_DOCS"), False),
        log_level=os.getenv("FRP_MANAGER_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
