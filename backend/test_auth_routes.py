from auth import create_token
from conftest import register


def test_register_returns_token_and_public_user(client):
    resp = client.post("/api/auth/register", json={
        "username": "alice", "email": "Alice@Example.com", "password": "secret123",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert "password_hash" not in body["user"]


def test_register_missing_fields(client):
    resp = client.post("/api/auth/register", json={"username": "alice", "email": "a@example.com"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Please provide all fields"}


def test_register_short_password(client):
    resp = client.post("/api/auth/register", json={"username": "a", "email": "a@example.com", "password": "123"})
    assert resp.status_code == 400


def test_register_duplicate_email_conflicts(client, alice):
    resp = client.post("/api/auth/register", json={
        "username": "other", "email": "alice@example.com", "password": "secret123",
    })
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "User already exists"}


def test_password_is_hashed_at_rest(client, alice, user_repo):
    stored = user_repo.find_by_email("alice@example.com")
    assert stored["password_hash"] != "secret123"
    assert stored["password_hash"].startswith("$2")


def test_login(client, alice):
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "alice"

    bad = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "message": "Invalid credentials"}

    unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"})
    assert unknown.status_code == 401


def test_me(client, alice):
    headers, user = alice
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == user


def test_missing_or_malformed_token(client):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False
    assert resp.headers["WWW-Authenticate"] == "Bearer"
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_token_for_unknown_user_is_rejected(client):
    token = create_token({"user_id": 1, "email": "ghost@example.com"})
    resp = client.get("/api/habits", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_for_reused_id_is_rejected(client):
    # e.g. a token issued before the in-memory store was reset
    stale = create_token({"user_id": 1, "email": "old@example.com"})
    register(client, "new")
    resp = client.get("/api/habits", headers={"Authorization": f"Bearer {stale}"})
    assert resp.status_code == 401


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_password_handlers_run_in_threadpool():
    # bcrypt work must not block the event loop
    import inspect
    from routes import auth_routes
    assert not inspect.iscoroutinefunction(auth_routes.register)
    assert not inspect.iscoroutinefunction(auth_routes.login)


def test_password_helpers():
    from auth import hash_password, verify_password, verify_token
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")

    claims = verify_token(create_token({"user_id": 7, "email": "a@example.com"}))
    assert claims["user_id"] == 7
    assert claims["jti"] and claims["exp"] > claims["iat"]
    assert verify_token("garbage") is None


def test_overlong_username_is_rejected(client):
    resp = client.post("/api/auth/register", json={"username": "u" * 51, "email": "a@example.com", "password": "secret123"})
    assert resp.status_code == 400
