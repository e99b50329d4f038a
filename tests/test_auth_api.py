from app.core.security import hash_password


async def test_login_returns_token_and_user(client, factory, org):
    user = await factory.user("teacher", org, email="tom@example.com", password_hash=hash_password("pw-123"))

    response = await client.post("/api/auth/login", json={"email": "TOM@example.com", "password": "pw-123"})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == str(user.id)
    assert "ssn" not in body["user"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "tom@example.com"


async def test_login_rejects_bad_password(client, factory, org):
    await factory.user("teacher", org, email="tom@example.com", password_hash=hash_password("pw-123"))

    response = await client.post("/api/auth/login", json={"email": "tom@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


async def test_login_rejects_inactive_user(client, factory, org):
    await factory.user("teacher", org, email="old@example.com",
                       password_hash=hash_password("pw-123"), is_active=False)
    response = await client.post("/api/auth/login", json={"email": "old@example.com", "password": "pw-123"})
    assert response.status_code == 401


async def test_missing_header_is_401(client):
    response = await client.get("/api/classes")
    assert response.status_code == 401
    assert response.json()["error"] == "Missing Authorization header"


async def test_garbage_token_is_401(client):
    response = await client.get("/api/classes", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_wrong_role_is_403(client, guardian, headers):
    response = await client.get("/api/classes", headers=headers(guardian))
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden"}


async def test_user_without_org_is_rejected(client, factory, headers):
    orphan = await factory.user("principal", None)
    response = await client.get("/api/classes", headers=headers(orphan))
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_ORG_ID"


async def test_validation_errors_use_error_envelope(client):
    response = await client.post("/api/auth/login", json={"email": "not-an-email"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert body["details"]
