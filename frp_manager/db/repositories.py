from __future__ import annotations

import json
from typing import Any

import aiosqlite


class AuditLogRepository:
    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def insert_audit_log(
        self,
        *,
        channel: str,
        endpoint: str,
        req_id: str | None,
        op: str | None,
        version: str | None,
        query_op: str | None,
        query_version: str | None,
        timestamp: str,
        content: dict[str, Any],
    ) -> int:
        """Insert one row and commit; the row is rolled back if the commit never happens."""
        try:
            cursor = await self.conn.execute(
                """
                INSERT INTO plugin_audit_logs(
                  channel, endpoint, req_id, op, version, query_op, query_version, timestamp, content_json
                ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    channel,
                    endpoint,
                    req_id,
                    op,
                    version,
                    query_op,
                    query_version,
                    timestamp,
                    json.dumps(content, ensure_ascii=False),
                ),
            )
            row_id = int(cursor.lastrowid)
            await self.conn.commit()
        except BaseException:
            await self.conn.rollback()
            raise
        return row_id

    async def list_audit_logs(self, channel: str) -> list[dict[str, Any]]:
        cursor = await self.conn.execute(
            """
            SELECT id, endpoint, req_id, op, version, query_op, query_version, timestamp, content_json
            FROM plugin_audit_logs
            WHERE channel=?
            ORDER BY id ASC
            """,
            (channel,),
        )
        rows = await cursor.fetchall()
        result: list[dict[str, Any]] = []
        for row in rows:
            item = dict(row)
            item["content"] = json.loads(item.pop("content_json") or "{}")
            result.append(item)
        return result
