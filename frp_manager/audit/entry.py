"""Audit entries and the sink interface every storage backend implements."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """One accepted plugin operation, as captured by the manager.

    ``timestamp`` is the capture time on the manager (UTC, ISO-8601), not the
    client-claimed time carried inside some payloads. ``id`` is assigned by
    the sink on append.
    """

    endpoint: str
    req_id: str | None
    op: str | None
    version: str | None
    query_op: str | None
    query_version: str | None
    timestamp: str
    content: dict[str, Any]
    id: int | None = None

    def with_id(self, entry_id: int) -> "AuditEntry":
        return replace(self, id=entry_id)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "AuditEntry":
        return cls(
            endpoint=str(raw["endpoint"]),
            req_id=raw.get("req_id"),
            op=raw.get("op"),
            version=raw.get("version"),
            query_op=raw.get("query_op"),
            query_version=raw.get("query_version"),
            timestamp=str(raw["timestamp"]),
            content=dict(raw.get("content") or {}),
            id=raw.get("id"),
        )


class AuditSink(Protocol):
    """Append-only store of audit entries, partitioned by channel.

    ``append`` must be atomic per entry: concurrent appends on one channel are
    serialised, and an interrupted append leaves no partial entry. Storage
    failures surface as ``PluginError`` with code ``E_AUDIT_SINK``.
    """

    backend: str

    async def append(self, channel: str, entry: AuditEntry) -> AuditEntry: ...

    async def list_entries(self, channel: str) -> list[AuditEntry]: ...

    async def close(self) -> None: ...
