"""연결 레지스트리와 알림 WebSocket 엔드포인트 테스트입니다."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.main import app
from app.utils.connection_registry import ConnectionRegistry
from tests.conftest import auth_headers, engine, get_token


def test_registry_register_lookup_unregister():
    registry = ConnectionRegistry()
    first, second = object(), object()

    registry.register(7, first)
    assert registry.lookup("7") is first

    registry.register("7", second)
    # 이전 연결이 끊겨도 최신 연결은 남는다.
    registry.unregister(7, first)
    assert registry.lookup(7) is second

    registry.unregister(7, second)
    assert registry.lookup(7) is None
    registry.unregister(7)


def test_socket_rejects_invalid_token(seed_users):
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/notifications?token=not-a-token") as ws:
            ws.receive_json()


def test_socket_registers_connected_user(seed_users):
    client = TestClient(app)
    token = get_token(client, "staff@example.com")
    registry = app.state.connection_registry
    staff_id = seed_users["staff"].user_id

    with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
        hello = ws.receive_json()
        assert hello == {"event": "connected", "data": {"user_id": staff_id}}
        assert registry.lookup(staff_id) is not None

    assert registry.lookup(staff_id) is None


def test_assignment_is_pushed_to_open_socket(seed_users, seed_project):
    client = TestClient(app)
    token = get_token(client, "staff@example.com")
    manager_headers = auth_headers(client, "manager@example.com")

    with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
        ws.receive_json()
        resp = client.post(
            f"/api/projects/{seed_project.project_id}/tasks",
            json={"title": "Wire up sockets", "assignee": [seed_users["staff"].user_id]},
            headers=manager_headers,
        )
        assert resp.status_code == 201, resp.text

        message = ws.receive_json()
        assert message["event"] == "task-assigned"
        assert message["data"]["message"] == "You have been assigned to task: 'Wire up sockets'"
        assert message["data"]["task"]["task_id"] == resp.json()["task_id"]


def test_open_socket_does_not_hold_a_database_connection(seed_users):
    client = TestClient(app)
    token = get_token(client, "staff@example.com")
    in_use = engine.pool.checkedout()

    with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
        ws.receive_json()
        assert engine.pool.checkedout() == in_use
        # 소켓이 열린 상태에서도 일반 요청은 처리된다.
        assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200
