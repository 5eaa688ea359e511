"""Operation kinds, their descriptors, and the registry used for dispatch."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping

from frp_manager.protocol.payloads import (
    CloseProxyContent,
    FrpContent,
    LoginContent,
    NewProxyContent,
    NewUserConnContent,
    NewWorkConnContent,
    PingContent,
)


class Operation(str, Enum):
    LOGIN = "login"
    NEW_PROXY = "newproxy"
    CLOSE_PROXY = "closeproxy"
    PING = "ping"
    NEW_WORK_CONN = "newworkconn"
    NEW_USER_CONN = "newuserconn"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str | None) -> "Operation":
        normalized = (name or "").strip().lower()
        for member in cls:
            if member is not cls.UNKNOWN and member.value == normalized:
                return member
        return cls.UNKNOWN

    @classmethod
    def known(cls) -> tuple["Operation", ...]:
        return tuple(member for member in cls if member is not cls.UNKNOWN)


class ResponsePolicy(str, Enum):
    ACCEPT_UNCHANGED = "accept_unchanged"
    ECHO_CONTENT = "echo_content"


@dataclass(frozen=True, slots=True)
class OperationDescriptor:
    operation: Operation
    payload_type: type[FrpContent]
    response_policy: ResponsePolicy

    @property
    def audit_channel(self) -> str:
        return self.operation.value


class OperationRegistry:
    def __init__(self, descriptors: Iterable[OperationDescriptor]) -> None:
        table: dict[Operation, OperationDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.operation is Operation.UNKNOWN:
                raise ValueError("Operation.UNKNOWN cannot be registered")
            if descriptor.operation in table:
                raise ValueError(f"Duplicate descriptor for {descriptor.operation.value}")
            table[descriptor.operation] = descriptor

        missing = [op.value for op in Operation.known() if op not in table]
        if missing:
            raise ValueError(f"Missing descriptors for: {', '.join(missing)}")

        self._descriptors: Mapping[Operation, OperationDescriptor] = MappingProxyType(table)

    def lookup(self, name: str | None) -> OperationDescriptor | None:
        return self._descriptors.get(Operation.parse(name))

    def get(self, operation: Operation) -> OperationDescriptor | None:
        return self._descriptors.get(operation)

    def operations(self) -> list[Operation]:
        return list(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


def build_default_registry() -> OperationRegistry:
    return OperationRegistry(
        [
            OperationDescriptor(Operation.LOGIN, LoginContent, ResponsePolicy.ACCEPT_UNCHANGED),
            OperationDescriptor(Operation.NEW_PROXY, NewProxyContent, ResponsePolicy.ECHO_CONTENT),
            OperationDescriptor(Operation.CLOSE_PROXY, CloseProxyContent, ResponsePolicy.ACCEPT_UNCHANGED),
            OperationDescriptor(Operation.PING, PingContent, ResponsePolicy.ACCEPT_UNCHANGED),
            OperationDescriptor(Operation.NEW_WORK_CONN, NewWorkConnContent, ResponsePolicy.ACCEPT_UNCHANGED),
            OperationDescriptor(Operation.NEW_USER_CONN, NewUserConnContent, ResponsePolicy.ACCEPT_UNCHANGED),
        ]
    )
