"""Typed content records for each frp server-plugin operation.

Field names are the wire names frps sends. Keys are matched
case-insensitively and unknown keys are ignored. Scalars are strict: a
string field never accepts a number and an integer field never accepts a
string, but absent fields fall back to their defaults.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt, StrictStr, ValidationError, model_validator

from frp_manager.errors import invalid_payload
from frp_manager.protocol.envelope import RpcEnvelope


class FrpContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        canonical = {name.lower(): name for name in cls.model_fields}
        matched: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            name = canonical.get(key.lower())
            if name is not None:
                matched[name] = value
        return matched

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class UserRef(FrpContent):
    user: Optional[StrictStr] = None
    metas: Optional[dict[str, Optional[StrictStr]]] = None
    run_id: Optional[StrictStr] = None


class LoginContent(FrpContent):
    version: Optional[StrictStr] = None
    hostname: Optional[StrictStr] = None
    os: Optional[StrictStr] = None
    arch: Optional[StrictStr] = None
    user: Optional[StrictStr] = None
    timestamp: StrictInt = 0
    privilege_key: Optional[StrictStr] = None
    run_id: Optional[StrictStr] = None
    pool_count: StrictInt = 0
    metas: Optional[dict[str, Optional[StrictStr]]] = None
    client_address: Optional[StrictStr] = None


class NewProxyContent(FrpContent):
    user: Optional[UserRef] = None
    proxy_name: Optional[StrictStr] = None
    proxy_type: Optional[StrictStr] = None
    use_encryption: StrictBool = False
    use_compression: StrictBool = False
    bandwidth_limit: Optional[StrictStr] = None
    bandwidth_limit_mode: Optional[StrictStr] = None
    group: Optional[StrictStr] = None
    group_key: Optional[StrictStr] = None
    remote_port: Optional[StrictInt] = None
    custom_domains: Optional[list[Optional[StrictStr]]] = None
    subdomain: Optional[StrictStr] = None
    locations: Optional[StrictStr] = None
    http_user: Optional[StrictStr] = None
    http_pwd: Optional[StrictStr] = None
    host_header_rewrite: Optional[StrictStr] = None
    headers: Optional[dict[str, Optional[StrictStr]]] = None
    sk: Optional[StrictStr] = None
    multiplexer: Optional[StrictStr] = None
    metas: Optional[dict[str, Optional[StrictStr]]] = None


class CloseProxyContent(FrpContent):
    user: Optional[UserRef] = None
    proxy_name: Optional[StrictStr] = None


class PingContent(FrpContent):
    user: Optional[UserRef] = None
    timestamp: StrictInt = 0
    privilege_key: Optional[StrictStr] = None


class NewWorkConnContent(FrpContent):
    user: Optional[UserRef] = None
    run_id: Optional[StrictStr] = None
    timestamp: StrictInt = 0
    privilege_key: Optional[StrictStr] = None


class NewUserConnContent(FrpContent):
    user: Optional[UserRef] = None
    proxy_name: Optional[StrictStr] = None
    proxy_type: Optional[StrictStr] = None
    remote_addr: Optional[StrictStr] = None


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "content"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def decode_content(payload_type: type[FrpContent], envelope: RpcEnvelope) -> FrpContent:
    """Bind the envelope's opaque content to ``payload_type``.

    Absent or null content and content that does not fit the record are
    reported separately so the caller can tell the two apart.
    """
    if envelope.content is None:
        reason = "null" if envelope.has_content else "missing"
        raise invalid_payload(envelope.op, f"{envelope.op} content is null", reason=reason)
    if not isinstance(envelope.content, dict):
        raise invalid_payload(
            envelope.op,
            f"Error parsing {envelope.op} content: expected a JSON object, got {type(envelope.content).__name__}",
            reason="invalid",
        )
    try:
        return payload_type.model_validate(envelope.content)
    except ValidationError as exc:
        raise invalid_payload(
            envelope.op,
            f"Error parsing {envelope.op} content: {describe_validation_error(exc)}",
            reason="invalid",
        ) from exc
