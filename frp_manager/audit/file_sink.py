from __future__ import annotations

import asyncio
import json
import logging
import os
import threading
from pathlib import Path

from frp_manager.audit.entry import AuditEntry
from frp_manager.errors import audit_sink_failure

logger = logging.getLogger(__name__)


class JsonLinesAuditSink:
    """Append-only JSON-lines files, one per channel (``<dir>/<channel>.jsonl``).

    Each append writes one complete line and fsyncs it before returning. A
    line that cannot be decoded on read (a write torn by a crash) is skipped
    with a warning.
    """

    backend = "file"

    def __init__(self, log_dir: Path) -> None:
        self.log_dir = Path(log_dir)
        self._lock = threading.Lock()
        self._next_ids: dict[str, int] = {}

    def _path(self, channel: str) -> Path:
        return self.log_dir / f"{channel}.jsonl"

    def _read(self, channel: str) -> list[AuditEntry]:
        path = self._path(channel)
        if not path.exists():
            return []
        entries: list[AuditEntry] = []
        with path.open("r", encoding="utf-8") as handle:
            for lineno, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError) as exc:
                    logger.warning(
                        "skipping unreadable audit line %s:%d (%s)",
                        path,
                        lineno,
                        exc,
                        extra={"op": channel},
                    )
        return entries

    def _next_id(self, channel: str) -> int:
        if channel not in self._next_ids:
            ids = [entry.id for entry in self._read(channel) if entry.id is not None]
            self._next_ids[channel] = max(ids, default=0) + 1
        return self._next_ids[channel]

    def _append(self, channel: str, entry: AuditEntry) -> AuditEntry:
        with self._lock:
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                stored = entry.with_id(self._next_id(channel))
                with self._path(channel).open("a", encoding="utf-8") as handle:
                    handle.write(stored.to_json() + "\n")
                    handle.flush()
                    os.fsync(handle.fileno())
            except OSError as exc:
                raise audit_sink_failure(str(exc)) from exc
            self._next_ids[channel] = stored.id + 1
            return stored

    def _list(self, channel: str) -> list[AuditEntry]:
        with self._lock:
            try:
                return self._read(channel)
            except OSError as exc:
                raise audit_sink_failure(str(exc)) from exc

    async def append(self, channel: str, entry: AuditEntry) -> AuditEntry:
        return await asyncio.to_thread(self._append, channel, entry)

    async def list_entries(self, channel: str) -> list[AuditEntry]:
        return await asyncio.to_thread(self._list, channel)

    async def close(self) -> None:
        return None
