from datetime import timedelta

from models.log import Log
from utils.tokenJWT import create_access_token

PASSWORD = "secret123"


def test_login_returns_token_and_profile(client, db_session, dispatcher):
    res = client.post("/api/auth/login", json={"email": "Carla@Escola.com.br", "password": PASSWORD})

    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["id"] == dispatcher.id
    assert body["user"]["role"] == "despachante"
    assert "password_hash" not in body["user"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "carla@escola.com.br"

    log = db_session.query(Log).filter(Log.action == "LOGIN").one()
    assert log.status == "SUCCESS"
    assert log.user_id == dispatcher.id


def test_login_with_wrong_password(client, db_session, requester):
    res = client.post("/api/auth/login", json={"email": requester.email, "password": "wrong-pass"})

    assert res.status_code == 401
    assert res.json() == {"error": "Credenciais inválidas"}
    assert db_session.query(Log).filter(Log.action == "LOGIN", Log.status == "FAIL").count() == 1


def test_login_unknown_email(client, db_session):
    res = client.post("/api/auth/login", json={"email": "nobody@escola.com.br", "password": PASSWORD})
    assert res.status_code == 401


def test_login_payload_is_validated(client, db_session):
    res = client.post("/api/auth/login", json={"email": "not-an-email", "password": PASSWORD})

    assert res.status_code == 400
    assert res.json()["error"].startswith("email")


def test_missing_or_bad_token(client, db_session, requester):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me").json() == {"error": "Token de acesso inválido ou ausente"}

    res = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401

    expired = create_access_token({"sub": str(requester.id)}, expires_delta=timedelta(minutes=-5))
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401


def test_token_for_deleted_user_is_rejected(client, db_session, requester, headers):
    auth = headers(requester)
    db_session.delete(requester)
    db_session.commit()

    assert client.get("/api/auth/me", headers=auth).status_code == 401


def test_protected_routes_need_a_token(client, db_session):
    for path in ("/api/materials", "/api/requests", "/api/dashboard/stats"):
        assert client.get(path).status_code == 401
