"""회원 가입, 로그인, 비밀번호 변경 흐름을 검증하는 테스트입니다."""

from app.models.user import User
from tests.conftest import TEST_PASSWORD, auth_headers


def _register(client, **overrides):
    body = {
        "username": "new.user@example.com",
        "password": "s3cret-pass",
        "roles": ["staff"],
        "department": "finance",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_and_login(client, db):
    resp = _register(client)
    assert resp.status_code == 201, resp.text
    assert resp.json()["roles"] == ["staff"]
    assert resp.json()["department"] == "finance"

    stored = db.query(User).filter(User.username == "new.user@example.com").one()
    assert stored.hashed_password != "s3cret-pass"
    assert stored.hashed_password.startswith("$2")

    login = client.post("/api/auth/login", json={"username": "new.user@example.com", "password": "s3cret-pass"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["username"] == "new.user@example.com"


def test_register_rejects_duplicates_and_invalid_fields(client):
    assert _register(client).status_code == 201
    duplicate = _register(client)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CONFLICT"

    assert _register(client, username="other@example.com", department="marketing").status_code == 400
    assert _register(client, username="other@example.com", roles=[]).status_code == 400
    assert _register(client, username="other@example.com", roles=["superuser"]).status_code == 400
    assert _register(client, username="not-an-email").status_code == 422


def test_login_with_wrong_password_fails(client, seed_users):
    resp = client.post("/api/auth/login", json={"username": "staff@example.com", "password": "wrong-password"})
    assert resp.status_code == 401


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/projects").status_code in (401, 403)


def test_change_password_rehashes(client, db, seed_users):
    headers = auth_headers(client, "staff@example.com")
    old_hash = seed_users["staff"].hashed_password

    wrong = client.put(
        "/api/users/me/password",
        json={"current_password": "nope-nope", "new_password": "brand-new-pass"},
        headers=headers,
    )
    assert wrong.status_code == 400

    resp = client.put(
        "/api/users/me/password",
        json={"current_password": TEST_PASSWORD, "new_password": "brand-new-pass"},
        headers=headers,
    )
    assert resp.status_code == 200
    db.expire_all()
    assert db.query(User).filter_by(user_id=seed_users["staff"].user_id).one().hashed_password != old_hash
    ok = client.post("/api/auth/login", json={"username": "staff@example.com", "password": "brand-new-pass"})
    assert ok.status_code == 200


def test_list_users_by_department(client, seed_users):
    headers = auth_headers(client, "staff@example.com")
    resp = client.get("/api/users", params={"department": "engineering"}, headers=headers)
    assert resp.status_code == 200
    assert {u["username"] for u in resp.json()} == {
        "manager@example.com", "staff@example.com", "colleague@example.com",
    }
    assert client.get(f"/api/users/{seed_users['admin'].user_id}", headers=headers).json()["roles"] == ["admin"]
    assert client.get("/api/users/9999", headers=headers).status_code == 404
