from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path

from frp_manager.audit.entry import AuditEntry
from frp_manager.db.connection import open_connection
from frp_manager.db.migrations import apply_migrations
from frp_manager.db.repositories import AuditLogRepository
from frp_manager.errors import audit_sink_failure


class SqliteAuditSink:
    """Transactional sink over a single aiosqlite connection.

    Appends and reads are serialised by an ``asyncio.Lock`` so row ids follow the order
    in which appends reach the sink.
    """

    backend = "sqlite"

    def __init__(self, repo: AuditLogRepository) -> None:
        self.repo = repo
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, db_path: Path) -> "SqliteAuditSink":
        await apply_migrations(db_path)
        conn = await open_connection(db_path)
        return cls(AuditLogRepository(conn))

    async def append(self, channel: str, entry: AuditEntry) -> AuditEntry:
        async with self._lock:
            try:
                row_id = await self.repo.insert_audit_log(
                    channel=channel,
                    endpoint=entry.endpoint,
                    req_id=entry.req_id,
                    op=entry.op,
                    version=entry.version,
                    query_op=entry.query_op,
                    query_version=entry.query_version,
                    timestamp=entry.timestamp,
                    content=entry.content,
                )
            except (sqlite3.Error, ValueError) as exc:
                raise audit_sink_failure(str(exc)) from exc
        return entry.with_id(row_id)

    async def list_entries(self, channel: str) -> list[AuditEntry]:
        # Same connection as append: an uncommitted insert would be visible here.
        async with self._lock:
            try:
                rows = await self.repo.list_audit_logs(channel)
            except (sqlite3.Error, ValueError) as exc:
                raise audit_sink_failure(str(exc)) from exc
        return [AuditEntry.from_dict(row) for row in rows]

    async def close(self) -> None:
        await self.repo.conn.close()
