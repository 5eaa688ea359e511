from __future__ import annotations

import asyncio

from frp_manager.audit.entry import AuditEntry


class InMemoryAuditSink:
    """Process-local sink; entries are lost on restart."""

    backend = "memory"

    def __init__(self) -> None:
        self._entries: dict[str, list[AuditEntry]] = {}
        self._lock = asyncio.Lock()

    async def append(self, channel: str, entry: AuditEntry) -> AuditEntry:
        async with self._lock:
            entries = self._entries.setdefault(channel, [])
            stored = entry.with_id(len(entries) + 1)
            entries.append(stored)
            return stored

    async def list_entries(self, channel: str) -> list[AuditEntry]:
        async with self._lock:
            return list(self._entries.get(channel, []))

    async def close(self) -> None:
        return None
