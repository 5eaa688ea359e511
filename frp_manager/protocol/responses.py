from __future__ import annotations

from typing import Any

from frp_manager.protocol.operations import ResponsePolicy
from frp_manager.protocol.payloads import FrpContent

UNSUPPORTED_OPERATION_REASON = "Unsupported operation"


# frps reads its decision from ``unchange``; an ``unchanged`` key would be ignored.
def accept_unchanged() -> dict[str, Any]:
    return {"reject": False, "unchange": True}


def accept_with_content(content: FrpContent) -> dict[str, Any]:
    return {"unchange": False, "content": content.to_wire()}


def reject(reason: str) -> dict[str, Any]:
    return {"reject": True, "reject_reason": reason}


def build_decision(policy: ResponsePolicy, content: FrpContent) -> dict[str, Any]:
    # ``content`` is emitted as given, so an amended record is what frps sees.
    if policy is ResponsePolicy.ECHO_CONTENT:
        return accept_with_content(content)
    return accept_unchanged()


def decision_kind(decision: dict[str, Any]) -> str:
    if decision.get("reject"):
        return "reject"
    if decision.get("unchange") is False:
        return "echo"
    return "accept"
