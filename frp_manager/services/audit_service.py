from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from frp_manager.audit.entry import AuditEntry, AuditSink
from frp_manager.protocol.payloads import FrpContent


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class AuditService:
    def __init__(self, sink: AuditSink, *, clock: Callable[[], datetime] = _utc_now):
        self.sink = sink
        self.clock = clock

    async def record(
        self,
        *,
        channel: str,
        endpoint: str,
        req_id: str | None,
        op: str | None,
        version: str | None,
        query_op: str | None,
        query_version: str | None,
        content: FrpContent,
    ) -> AuditEntry:
        entry = AuditEntry(
            endpoint=endpoint,
            req_id=req_id,
            op=op,
            version=version,
            query_op=query_op,
            query_version=query_version,
            timestamp=self.clock().isoformat(),
            content=content.to_wire(),
        )
        return await self.sink.append(channel, entry)

    async def list_entries(self, channel: str) -> list[AuditEntry]:
        return await self.sink.list_entries(channel)
