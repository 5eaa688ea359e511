"""Request bodies shaped like the ones frps sends to a server plugin."""
from __future__ import annotations

import json
from typing import Any

USER = {"user": "alice", "metas": {"region": "eu"}, "run_id": "r1"}

CONTENT = {
    "login": {
        "version": "0.58.1",
        "hostname": "",
        "os": "linux",
        "arch": "amd64",
        "user": "alice",
        "timestamp": 1700000000,
        "privilege_key": "d41d8cd98f00b204e9800998ecf8427e",
        "run_id": "r1",
        "pool_count": 1,
        "metas": {"token": "abc"},
        "client_address": "203.0.113.5:51234",
    },
    "newproxy": {
        "user": USER,
        "proxy_name": "web1",
        "proxy_type": "http",
        "use_encryption": True,
        "use_compression": False,
        "bandwidth_limit": "1MB",
        "bandwidth_limit_mode": "client",
        "group": "",
        "group_key": "",
        "custom_domains": ["web1.example.com"],
        "subdomain": "",
        "locations": "",
        "http_user": "admin",
        "http_pwd": "secret",
        "host_header_rewrite": "",
        "headers": {"X-From-Where": "frp"},
        "sk": "",
        "multiplexer": "",
        "metas": {"tier": "gold"},
    },
    "closeproxy": {"user": USER, "proxy_name": "web1"},
    "ping": {"user": USER, "timestamp": 1700000001, "privilege_key": "e3b0c442"},
    "newworkconn": {"user": USER, "run_id": "r1", "timestamp": 1700000002, "privilege_key": "e3b0c442"},
    "newuserconn": {"user": USER, "proxy_name": "web1", "proxy_type": "http", "remote_addr": "198.51.100.7:40000"},
}

MINIMAL_NEWPROXY = {"proxy_name": "web1", "proxy_type": "http", "user": {"user": "alice", "run_id": "r1"}}


def envelope(op: Any, content: Any = None, *, version: str = "0.1.0", include_content: bool = True) -> dict[str, Any]:
    body: dict[str, Any] = {"version": version, "op": op}
    if include_content:
        body["content"] = content
    return body


def envelope_body(op: Any, content: Any = None, **kwargs: Any) -> str:
    return json.dumps(envelope(op, content, **kwargs))
