from innerview.api.auth import TOKEN_TYPE_REFRESH, create_token

PASSWORD = "password123"


def test_login_returns_token_pair(client, teacher):
    r = client.post("/api/auth/login", json={"email": teacher.email.upper(), "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["email"] == teacher.email
    assert body["user"]["role"] == "TEACHER"
    assert body["accessToken"] and body["refreshToken"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["id"] == str(teacher.id)
    assert "passwordHash" not in me.json()


def test_login_rejects_bad_password_and_unknown_email(client, teacher):
    bad = client.post("/api/auth/login", json={"email": teacher.email, "password": "nope"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@school.test", "password": PASSWORD})
    assert bad.status_code == unknown.status_code == 401
    assert bad.json()["detail"] == unknown.json()["detail"] == "Invalid credentials"


def test_error_envelope_shape(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    body = r.json()
    assert body["statusCode"] == 401
    assert body["path"] == "/api/auth/me"
    assert body["method"] == "GET"
    assert body["message"] == "Authentication required"
    assert body["timestamp"]


def test_refresh_issues_new_pair(client, teacher):
    refresh = create_token(teacher, TOKEN_TYPE_REFRESH)
    r = client.post("/api/auth/refresh", json={"refreshToken": refresh})
    assert r.status_code == 200
    assert r.json()["user"]["id"] == str(teacher.id)


def test_refresh_rejects_access_token(client, teacher):
    r = client.post("/api/auth/refresh", json={"refreshToken": create_token(teacher)})
    assert r.status_code == 401


def test_access_rejects_refresh_token(client, teacher):
    headers = {"Authorization": f"Bearer {create_token(teacher, TOKEN_TYPE_REFRESH)}"}
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_invalid_bearer(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


def test_health_is_public(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_validation_errors_are_422(client):
    r = client.post("/api/auth/login", json={"email": "x@school.test"})
    assert r.status_code == 422
    body = r.json()
    assert body["statusCode"] == 422
    assert body["message"] == "Validation failed"
    assert body["path"] == "/api/auth/login"
    assert body["method"] == "POST"
    assert body["detail"][0]["loc"] == ["body", "password"]
