from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict


@dataclass(slots=True)
class ManagerMetrics:
    requests_total: Dict[str, int] = field(default_factory=dict)
    decisions_total: Dict[str, int] = field(default_factory=dict)
    errors_total: Dict[str, int] = field(default_factory=dict)
    audit_entries_total: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def increment_request(self, op: str) -> None:
        with self._lock:
            self.requests_total[op] = self.requests_total.get(op, 0) + 1

    def increment_decision(self, kind: str) -> None:
        with self._lock:
            self.decisions_total[kind] = self.decisions_total.get(kind, 0) + 1

    def increment_error(self, code: str) -> None:
        with self._lock:
            self.errors_total[code] = self.errors_total.get(code, 0) + 1

    def increment_audit_entries(self) -> None:
        with self._lock:
            self.audit_entries_total += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "requests_total": dict(self.requests_total),
                "decisions_total": dict(self.decisions_total),
                "errors_total": dict(self.errors_total),
                "audit_entries_total": self.audit_entries_total,
            }

    def reset(self) -> None:
        with self._lock:
            self.requests_total.clear()
            self.decisions_total.clear()
            self.errors_total.clear()
            self.audit_entries_total = 0


_manager_metrics = ManagerMetrics()


def get_manager_metrics() -> ManagerMetrics:
    return _manager_metrics
