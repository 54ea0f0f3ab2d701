import uuid

from .conftest import client


def _email(prefix="member"):
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def test_create_and_list_users(client):
    email = _email()
    resp = client.post(
        "/api/admin/users",
        json={"id": email, "email": email, "role": "supervisor", "firstName": "Min", "lastName": "Kim"},
    )
    assert resp.status_code == 201
    user = resp.json()
    assert user["role"] == "supervisor"
    assert user["firstName"] == "Min"
    assert "password" not in user and "passwordHash" not in user

    listed = client.get("/api/admin/users").json()
    assert email in [u["id"] for u in listed]


def test_create_user_with_password_can_sign_in(client):
    email = _email()
    client.post("/api/admin/users", json={"id": email, "email": email, "password": "pw"})
    resp = client.post("/api/login", json={"email": email, "password": "pw"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Signed in"


def test_duplicate_email_is_rejected(client):
    email = _email()
    assert client.post("/api/admin/users", json={"id": email, "email": email}).status_code == 201
    resp = client.post("/api/admin/users", json={"id": f"other-{email}", "email": email})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email already registered"


def test_invalid_user_payload(client):
    assert client.post("/api/admin/users", json={"id": "x", "email": "nope"}).status_code == 400
    email = _email()
    resp = client.post("/api/admin/users", json={"id": email, "email": email, "role": "owner"})
    assert resp.status_code == 400


def test_update_role(client):
    email = _email()
    client.post("/api/admin/users", json={"id": email, "email": email})
    resp = client.patch(f"/api/admin/users/{email}/role", json={"role": "admin"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"

    assert client.patch(f"/api/admin/users/{email}/role", json={"role": "root"}).status_code == 400
    missing = client.patch(f"/api/admin/users/missing-{email}/role", json={"role": "user"})
    assert missing.status_code == 404


def test_metrics_endpoint(client):
    client.get("/api/badges")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "request_count" in resp.text
