from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "frp-manager"
DEFAULT_MANAGER_VERSION = "0.0.0-dev"


def _distribution_version() -> str | None:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return None


def _normalize(raw: str) -> str:
    return raw.strip().removeprefix("v").removeprefix("V").strip()


def get_manager_version() -> str:
    """Release tag from ``FRP_MANAGER_VERSION``, else the installed package version.

    A source checkout that was never installed reports ``DEFAULT_MANAGER_VERSION``.
    """
    override = _normalize(os.getenv("FRP_MANAGER_VERSION", ""))
    if override:
        return override

    installed = _normalize(_distribution_version() or "")
    return installed or DEFAULT_MANAGER_VERSION
