from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException

from frp_manager.trace import TRACE_HEADER

DEFAULT_INTERNAL_MESSAGE = "Internal server error"

E_MALFORMED_ENVELOPE = "E_MALFORMED_ENVELOPE"
E_INVALID_PAYLOAD = "E_INVALID_PAYLOAD"
E_UNKNOWN_OPERATION = "E_UNKNOWN_OPERATION"
E_AUDIT_SINK = "E_AUDIT_SINK"
E_TIMEOUT = "E_TIMEOUT"
E_ROUTE_NOT_FOUND = "E_ROUTE_NOT_FOUND"
E_METHOD_NOT_ALLOWED = "E_METHOD_NOT_ALLOWED"
E_BAD_REQUEST = "E_BAD_REQUEST"
E_INTERNAL = "E_INTERNAL"


@dataclass(slots=True)
class PluginError(Exception):
    code: str
    message: str
    status_code: int
    retryable: bool = False
    details: dict[str, Any] | None = None
    cause: str | None = None

    def __str__(self) -> str:
        return self.message


def malformed_envelope(detail: str) -> PluginError:
    return PluginError(
        code=E_MALFORMED_ENVELOPE,
        message=f"Error parsing JSON: {detail}",
        status_code=400,
        cause="envelope_decode",
    )


def invalid_payload(op: str | None, message: str, *, reason: str) -> PluginError:
    return PluginError(
        code=E_INVALID_PAYLOAD,
        message=message,
        status_code=400,
        details={"op": op, "reason": reason},
        cause="payload_decode",
    )


def unknown_operation(op: str) -> PluginError:
    return PluginError(
        code=E_UNKNOWN_OPERATION,
        message=f"Unknown operation: {op}",
        status_code=404,
        details={"op": op},
        cause="unknown_operation",
    )


def audit_sink_failure(detail: str) -> PluginError:
    return PluginError(
        code=E_AUDIT_SINK,
        message=f"Audit log unavailable: {detail}",
        status_code=503,
        retryable=True,
        cause="audit_sink",
    )


def build_error(
    *,
    code: str,
    message: str,
    trace_id: str,
    retryable: bool,
    details: dict[str, Any] | None = None,
    cause: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "code": code,
        "message": message,
        "trace_id": trace_id,
        "retryable": retryable,
        "ts": datetime.now(tz=timezone.utc).isoformat(),
    }
    if details:
        payload["details"] = details
    if cause:
        payload["cause"] = cause
    return payload


def error_response(
    *,
    code: str,
    message: str,
    trace_id: str,
    retryable: bool,
    details: dict[str, Any] | None = None,
    cause: str | None = None,
) -> dict[str, Any]:
    return {
        "error": build_error(
            code=code,
            message=message,
            trace_id=trace_id,
            retryable=retryable,
            details=details,
            cause=cause,
        )
    }


def _http_exception_code(status_code: int) -> str:
    if status_code >= 500:
        return E_INTERNAL
    if status_code == 404:
        return E_ROUTE_NOT_FOUND
    if status_code == 405:
        return E_METHOD_NOT_ALLOWED
    return E_BAD_REQUEST


def error_from_exception(exc: BaseException, trace_id: str) -> tuple[int, dict[str, Any]]:
    if isinstance(exc, PluginError):
        return (
            exc.status_code,
            error_response(
                code=exc.code,
                message=exc.message,
                trace_id=trace_id,
                retryable=exc.retryable,
                details=exc.details,
                cause=exc.cause,
            ),
        )

    if isinstance(exc, RequestValidationError):
        return (
            422,
            error_response(
                code=E_INVALID_PAYLOAD,
                message="Request validation failed.",
                trace_id=trace_id,
                retryable=False,
                details={"errors": exc.errors()},
                cause="request_validation_error",
            ),
        )

    if isinstance(exc, HTTPException):
        retryable = exc.status_code >= 500
        return (
            exc.status_code,
            error_response(
                code=_http_exception_code(exc.status_code),
                message=str(exc.detail),
                trace_id=trace_id,
                retryable=retryable,
                cause="http_exception",
            ),
        )

    if isinstance(exc, asyncio.TimeoutError):
        return (
            504,
            error_response(
                code=E_TIMEOUT,
                message="Request timed out.",
                trace_id=trace_id,
                retryable=True,
                cause="timeout",
            ),
        )

    return (
        500,
        error_response(
            code=E_INTERNAL,
            message=DEFAULT_INTERNAL_MESSAGE,
            trace_id=trace_id,
            retryable=False,
            cause=exc.__class__.__name__,
        ),
    )


def render_error(exc: BaseException, trace_id: str, *, json_errors: bool) -> Response:
    """Render a failed request.

    frps only inspects the status code of a non-200 plugin response, so the
    default body is the plain diagnostic text. ``json_errors`` switches every
    error path to the JSON error envelope.
    """
    status_code, payload = error_from_exception(exc, trace_id)
    if json_errors:
        response: Response = JSONResponse(status_code=status_code, content=payload)
    else:
        response = PlainTextResponse(status_code=status_code, content=payload["error"]["message"])
    if isinstance(exc, HTTPException) and exc.headers:
        response.headers.update(exc.headers)
    response.headers[TRACE_HEADER] = trace_id
    return response
