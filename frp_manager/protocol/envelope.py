from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from frp_manager.errors import malformed_envelope

# Version of the frp server-plugin protocol this manager speaks.
PLUGIN_PROTOCOL_VERSION = "0.1.0"


@dataclass(frozen=True, slots=True)
class RpcEnvelope:
    version: str | None
    op: str | None
    content: Any = None
    has_content: bool = False


def _optional_str(key: str, value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise malformed_envelope(f"field '{key}' must be a string, got {type(value).__name__}")


def decode_envelope(body: bytes | str) -> RpcEnvelope:
    """Decode the outer ``{version, op, content}`` object.

    ``content`` is kept as the raw decoded JSON value; it is bound to a record
    only after the operation is resolved.
    """
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise malformed_envelope(str(exc)) from exc
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as exc:
        raise malformed_envelope(str(exc)) from exc
    try:
        json.dumps(raw, ensure_ascii=False).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise malformed_envelope(f"invalid string escape: {exc.reason}") from exc

    if raw is None:
        raise malformed_envelope("request body is null")
    if not isinstance(raw, dict):
        raise malformed_envelope(f"expected a JSON object, got {type(raw).__name__}")

    fields: dict[str, Any] = {}
    for key, value in raw.items():
        fields[key.lower()] = value

    return RpcEnvelope(
        version=_optional_str("version", fields.get("version")),
        op=_optional_str("op", fields.get("op")),
        content=fields.get("content"),
        has_content="content" in fields,
    )
