"""Envelope dispatch: decode, resolve, validate, audit, decide."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from frp_manager.errors import PluginError
from frp_manager.observability.metrics import ManagerMetrics, get_manager_metrics
from frp_manager.protocol.envelope import decode_envelope
from frp_manager.protocol.operations import OperationRegistry
from frp_manager.protocol.payloads import decode_content
from frp_manager.protocol.responses import (
    UNSUPPORTED_OPERATION_REASON,
    build_decision,
    decision_kind,
    reject,
)
from frp_manager.services.audit_service import AuditService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RequestContext:
    endpoint: str
    req_id: str | None = None
    query_op: str | None = None
    query_version: str | None = None


class Dispatcher:
    def __init__(
        self,
        registry: OperationRegistry,
        audit_service: AuditService,
        *,
        metrics: ManagerMetrics | None = None,
    ) -> None:
        self.registry = registry
        self.audit_service = audit_service
        self.metrics = metrics or get_manager_metrics()

    async def dispatch(self, body: bytes | str, context: RequestContext) -> dict[str, Any]:
        """Run one plugin request through the pipeline and return the decision.

        Raises ``PluginError`` for a malformed envelope, an invalid payload or
        an audit write that did not succeed. An unknown operation is not an
        error: it yields a reject decision and is never audited.
        """
        try:
            return await self._dispatch(body, context)
        except PluginError as exc:
            self.metrics.increment_error(exc.code)
            logger.warning(
                exc.message,
                extra={
                    "req_id": context.req_id,
                    "endpoint": context.endpoint,
                    "code": exc.code,
                    "outcome": "error",
                },
            )
            raise

    async def _dispatch(self, body: bytes | str, context: RequestContext) -> dict[str, Any]:
        envelope = decode_envelope(body)
        descriptor = self.registry.lookup(envelope.op)
        if descriptor is None:
            self.metrics.increment_request("unknown")
            self.metrics.increment_decision("reject")
            logger.info(
                "unsupported plugin operation",
                extra={
                    "req_id": context.req_id,
                    "endpoint": context.endpoint,
                    "op": envelope.op,
                    "outcome": "reject",
                },
            )
            return reject(UNSUPPORTED_OPERATION_REASON)

        self.metrics.increment_request(descriptor.operation.value)
        content = decode_content(descriptor.payload_type, envelope)

        entry = await self.audit_service.record(
            channel=descriptor.audit_channel,
            endpoint=context.endpoint,
            req_id=context.req_id,
            op=envelope.op,
            version=envelope.version,
            query_op=context.query_op,
            query_version=context.query_version,
            content=content,
        )
        self.metrics.increment_audit_entries()

        decision = build_decision(descriptor.response_policy, content)
        kind = decision_kind(decision)
        self.metrics.increment_decision(kind)
        logger.info(
            "plugin operation handled",
            extra={
                "req_id": context.req_id,
                "endpoint": context.endpoint,
                "op": descriptor.operation.value,
                "audit_id": entry.id,
                "outcome": kind,
            },
        )
        return decision
