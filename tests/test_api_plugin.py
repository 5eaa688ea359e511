import pytest

from frp_manager.audit.memory_sink import InMemoryAuditSink
from frp_manager.deps import get_dispatcher
from frp_manager.errors import audit_sink_failure
from frp_manager.protocol.operations import build_default_registry
from frp_manager.services.audit_service import AuditService
from frp_manager.services.dispatcher import Dispatcher

from frp_samples import CONTENT, MINIMAL_NEWPROXY, envelope

OPERATIONS = ["login", "newproxy", "closeproxy", "ping", "newworkconn", "newuserconn"]


def _logs(client, op):
    resp = client.get(f"/logs/{op}")
    assert resp.status_code == 200
    return resp.json()


@pytest.mark.parametrize("endpoint", ["/user-manager", "/port-manager"])
@pytest.mark.parametrize("op", OPERATIONS)
def test_known_operations_follow_their_response_policy(backend_client, endpoint, op):
    for name in (op, op.upper(), op.capitalize()):
        resp = backend_client.post(endpoint, json=envelope(name, CONTENT[op]))

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/json")
        body = resp.json()
        if op == "newproxy":
            assert body["unchange"] is False
            assert body["content"]["proxy_name"] == "web1"
            assert body["content"]["custom_domains"] == ["web1.example.com"]
        else:
            assert body == {"reject": False, "unchange": True}

    assert len(_logs(backend_client, op)) == 3


@pytest.mark.parametrize("content", [None, {}, "text", [1], {"proxy_name": "web1"}])
def test_unknown_operation_is_a_reject_decision(isolated_client, content):
    resp = isolated_client.post("/user-manager", json=envelope("LaunchMissiles", content))

    assert resp.status_code == 200
    assert resp.json() == {"reject": True, "reject_reason": "Unsupported operation"}
    for op in OPERATIONS:
        assert _logs(isolated_client, op) == []


def test_truncated_body_is_rejected_as_plain_text(isolated_client):
    resp = isolated_client.post(
        "/port-manager",
        content=b'{"op":',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text.startswith("Error parsing JSON: ")
    for op in OPERATIONS:
        assert _logs(isolated_client, op) == []


def test_lone_surrogate_is_rejected_before_audit(backend_client):
    resp = backend_client.post(
        "/user-manager",
        content=b'{"op":"ping","content":{"privilege_key":"\\ud800","timestamp":1}}',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.text.startswith("Error parsing JSON: invalid string escape")
    assert _logs(backend_client, "ping") == []

    follow_up = backend_client.post("/user-manager", json=envelope("ping", CONTENT["ping"]))
    assert follow_up.status_code == 200
    assert len(_logs(backend_client, "ping")) == 1


def test_invalid_payload_names_the_operation(isolated_client):
    resp = isolated_client.post("/user-manager", json=envelope("NewProxy", {"remote_port": "6000"}))

    assert resp.status_code == 400
    assert "Error parsing NewProxy content" in resp.text
    assert "remote_port" in resp.text
    assert _logs(isolated_client, "newproxy") == []


def test_null_payload_is_rejected(isolated_client):
    resp = isolated_client.post("/user-manager", json=envelope("login", None))

    assert resp.status_code == 400
    assert resp.text == "login content is null"


def test_minimal_newproxy_is_echoed(isolated_client):
    resp = isolated_client.post("/port-manager", json=envelope("newproxy", MINIMAL_NEWPROXY))

    assert resp.status_code == 200
    body = resp.json()
    assert body["unchange"] is False
    assert body["content"]["proxy_name"] == "web1"
    assert body["content"]["user"] == {"user": "alice", "metas": None, "run_id": "r1"}


def test_audit_entry_records_transport_details(isolated_client):
    resp = isolated_client.post(
        "/port-manager",
        params={"op": "NewUserConn", "version": "0.1.0"},
        headers={"X-Frp-Reqid": "7f3a"},
        json=envelope("NewUserConn", CONTENT["newuserconn"]),
    )

    assert resp.status_code == 200
    assert resp.headers["X-Trace-Id"] == "7f3a"
    [entry] = _logs(isolated_client, "newuserconn")
    assert entry["endpoint"] == "port-manager"
    assert entry["req_id"] == "7f3a"
    assert entry["op"] == "NewUserConn"
    assert entry["version"] == "0.1.0"
    assert entry["query_op"] == "NewUserConn"
    assert entry["query_version"] == "0.1.0"
    assert entry["content"]["remote_addr"] == "198.51.100.7:40000"
    assert entry["timestamp"]


def test_missing_reqid_is_stored_as_null(isolated_client):
    resp = isolated_client.post("/user-manager", json=envelope("ping", CONTENT["ping"]))

    assert resp.status_code == 200
    assert resp.headers["X-Trace-Id"]
    [entry] = _logs(isolated_client, "ping")
    assert entry["req_id"] is None
    assert entry["query_op"] is None


def test_query_op_does_not_drive_dispatch(isolated_client):
    resp = isolated_client.post(
        "/user-manager",
        params={"op": "NewProxy"},
        json=envelope("ping", CONTENT["ping"]),
    )

    assert resp.json() == {"reject": False, "unchange": True}
    assert len(_logs(isolated_client, "ping")) == 1
    assert _logs(isolated_client, "newproxy") == []


def test_sequential_pings_are_listed_in_order(backend_client):
    for index in range(6):
        resp = backend_client.post(
            "/user-manager",
            headers={"X-Frp-Reqid": f"req-{index}"},
            json=envelope("ping", {**CONTENT["ping"], "timestamp": index}),
        )
        assert resp.status_code == 200

    first = _logs(backend_client, "ping")
    second = _logs(backend_client, "ping")

    assert [entry["req_id"] for entry in first] == [f"req-{index}" for index in range(6)]
    assert len({entry["id"] for entry in first}) == 6
    assert first == second


def test_audit_failure_returns_503_without_decision(main_module, isolated_client):
    class FailingSink(InMemoryAuditSink):
        async def append(self, channel, entry):
            raise audit_sink_failure("database is locked")

    dispatcher = Dispatcher(build_default_registry(), AuditService(FailingSink()))
    main_module.app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    resp = isolated_client.post("/user-manager", json=envelope("login", CONTENT["login"]))

    assert resp.status_code == 503
    assert resp.headers["content-type"].startswith("text/plain")
    assert "unchange" not in resp.text
    assert "Audit log unavailable" in resp.text


def test_slow_audit_times_out(main_module, isolated_client, monkeypatch):
    import asyncio

    class SlowSink(InMemoryAuditSink):
        async def append(self, channel, entry):
            await asyncio.sleep(5)
            return await super().append(channel, entry)

    sink = SlowSink()
    dispatcher = Dispatcher(build_default_registry(), AuditService(sink))
    main_module.app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    monkeypatch.setattr(main_module.settings, "request_timeout_seconds", 0.05)

    resp = isolated_client.post("/user-manager", json=envelope("ping", CONTENT["ping"]))

    assert resp.status_code == 504
    assert resp.text == "Request timed out."
    assert sink._entries == {}
