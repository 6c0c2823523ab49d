from datetime import timedelta

from security import create_access_token, decode_token, hash_password, verify_password


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", None)


def test_token_round_trip(settings):
    token = create_access_token({"sub": "5", "role": "admin"}, settings)
    payload = decode_token(token, settings)
    assert payload["sub"] == "5"
    assert payload["role"] == "admin"
    assert decode_token("garbage", settings) is None


def test_expired_token_is_rejected(client, settings, admin_headers):
    token = create_access_token({"sub": "1", "role": "admin"}, settings, expires_delta=timedelta(minutes=-1))
    res = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["message"] == "Session expired, please login again"


def test_first_admin_only(client, admin_headers):
    res = client.post("/api/admin/register", json={"username": "second", "password": "secret123"})
    assert res.status_code == 403


def test_admin_login_and_profile(client, admin_headers):
    me = client.get("/api/admin/me", headers=admin_headers).json()["data"]
    assert me["username"] == "examcell"
    assert me["designation"] == "Exam Controller"

    res = client.post("/api/admin/login", json={"username": "ExamCell", "password": "secret123"})
    assert res.status_code == 200
    assert res.json()["data"]["lastLogin"] is not None

    bad = client.post("/api/admin/login", json={"username": "examcell", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "message": "Invalid credentials"}


def test_change_password(client, admin_headers):
    wrong = client.put("/api/admin/change-password", headers=admin_headers, json={
        "currentPassword": "nope", "newPassword": "newsecret1",
    })
    assert wrong.status_code == 401

    res = client.put("/api/admin/change-password", headers=admin_headers, json={
        "currentPassword": "secret123", "newPassword": "newsecret1",
    })
    assert res.status_code == 200
    assert client.post("/api/admin/login", json={"username": "examcell", "password": "newsecret1"}).status_code == 200


def test_missing_token(client):
    res = client.get("/api/admin/me")
    assert res.status_code == 401
    assert res.json()["message"] == "Not authorized, no token"


def test_student_login_and_profile(client, make_student):
    make_student("BSC2024001", email="asha@example.com")

    assert client.post("/api/student/login", json={"rollNumber": "BSC2024001", "password": "wrong"}).status_code == 401
    assert client.post("/api/student/login", json={"password": "20020515"}).status_code == 400

    res = client.post("/api/student/login", json={"identifier": "ASHA@example.com", "password": "20020515"})
    assert res.status_code == 200, res.text
    headers = {"Authorization": f"Bearer {res.json()['token']}"}

    me = client.get("/api/student/me", headers=headers).json()["data"]
    assert me["rollNumber"] == "BSC2024001"
    assert me["dateOfBirth"] == "2002-05-15"

    # student tokens do not open admin endpoints
    assert client.get("/api/admin/me", headers=headers).status_code == 401


def test_unknown_route_uses_envelope(client):
    res = client.get("/api/nowhere")
    assert res.status_code == 404
    assert res.json()["success"] is False


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
