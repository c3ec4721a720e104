from screenscore.models.user import User
from screenscore.utils.security import (
    SESSION_COOKIE_NAME,
    hash_password,
    resolve_session,
    verify_password,
)

from conftest import create_user, sign_in


# ============================================
# Signup
# ============================================

def test_signup_creates_user_with_hashed_password(client, db_session):
    payload = {"username": "newbie", "email": "newbie@mail.com", "password": "hunter22"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"

    db_session.expire_all()
    user = db_session.get(User, body["userId"])
    assert user.username == "newbie"
    assert user.email == "newbie@mail.com"
    assert user.join_date is not None
    assert user.password_hash != "hunter22"
    assert verify_password("hunter22", user.password_hash)


def test_signup_does_not_log_the_user_in(client, db_session):
    payload = {"username": "newbie", "email": "newbie@mail.com", "password": "hunter22"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 201
    assert SESSION_COOKIE_NAME not in response.cookies


def test_signup_with_taken_email_conflicts(client, test_user):
    payload = {"username": "someone_else", "email": test_user.email, "password": "hunter22"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 409


def test_signup_with_taken_username_conflicts(client, test_user):
    payload = {"username": test_user.username, "email": "other@mail.com", "password": "hunter22"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 409


def test_signup_rejects_missing_or_malformed_fields(client, db_session):
    bad_payloads = [
        {"email": "x@mail.com", "password": "hunter22"},
        {"username": "ok_name", "email": "not-an-email", "password": "hunter22"},
        {"username": "no spaces!", "email": "x@mail.com", "password": "hunter22"},
        {"username": "ok_name", "email": "x@mail.com", "password": "123"},
        {"username": "ok_name", "email": "x@mail.com", "password": "p" * 73},
    ]
    for payload in bad_payloads:
        response = client.post("/api/auth/signup", json=payload)
        assert response.status_code == 400, payload

    assert db_session.query(User).count() == 0


# ============================================
# Login / logout
# ============================================

def test_login_sets_http_only_session_cookie(client, db_session):
    user = create_user(db_session, username="alice", email="a@x.com", password="secret")

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json()["user"] == {"userId": user.id, "username": "alice"}

    set_cookie = response.headers.get("set-cookie", "")
    assert f"{SESSION_COOKIE_NAME}=" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "Path=/" in set_cookie
    assert "Max-Age=3600" in set_cookie

    identity = resolve_session(response.cookies.get(SESSION_COOKIE_NAME))
    assert identity is not None
    assert identity.user_id == user.id
    assert identity.username == "alice"


def test_login_with_wrong_password_is_unauthorized(client, test_user):
    response = client.post("/api/auth/login", json={"email": test_user.email, "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"
    assert "set-cookie" not in response.headers


def test_login_with_unknown_email_is_unauthorized(client, db_session):
    response = client.post("/api/auth/login", json={"email": "ghost@mail.com", "password": "secret"})

    assert response.status_code == 401


def test_login_with_missing_fields_is_bad_request(client, db_session):
    response = client.post("/api/auth/login", json={"email": "a@x.com"})

    assert response.status_code == 400


def test_logout_expires_the_cookie(auth_client):
    response = auth_client.post("/api/auth/logout")

    assert response.status_code == 200
    set_cookie = response.headers.get("set-cookie", "")
    assert f"{SESSION_COOKIE_NAME}=" in set_cookie
    assert "Max-Age=0" in set_cookie
    assert "01 Jan 1970" in set_cookie


def test_logout_when_anonymous_still_succeeds(client, db_session):
    response = client.post("/api/auth/logout")

    assert response.status_code == 200


# ============================================
# Session status / profile
# ============================================

def test_session_status_for_anonymous_caller(client, db_session):
    response = client.get("/api/auth/session")

    assert response.status_code == 200
    assert response.json() == {"isLoggedIn": False, "user": None}


def test_session_status_after_login(client, db_session):
    user = create_user(db_session)
    client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret"})

    response = client.get("/api/auth/session")

    assert response.json() == {"isLoggedIn": True, "user": {"userId": user.id, "username": "alice"}}


def test_session_status_treats_garbage_cookie_as_anonymous(client, db_session):
    client.cookies.set(SESSION_COOKIE_NAME, "garbage")

    response = client.get("/api/auth/session")

    assert response.status_code == 200
    assert response.json()["isLoggedIn"] is False


def test_me_requires_session(client, db_session):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


def test_me_returns_profile(auth_client, test_user):
    response = auth_client.get("/api/auth/me")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == test_user.id
    assert body["username"] == "alice"
    assert body["email"] == "a@x.com"
    assert "joinDate" in body
    assert "passwordHash" not in body


def test_me_for_vanished_user_is_not_found(client, db_session):
    ghost = create_user(db_session, username="ghost", email="ghost@mail.com")
    sign_in(client, ghost)
    db_session.delete(ghost)
    db_session.commit()

    response = client.get("/api/auth/me")

    assert response.status_code == 404


# ============================================
# Password hashing
# ============================================

def test_password_hash_only_depends_on_first_72_bytes():
    # 36 two-byte characters fill bcrypt's 72-byte window exactly
    password = "é" * 36
    hashed = hash_password(password)

    assert verify_password(password, hashed)
    assert verify_password(password + "ignored tail", hashed)
    assert not verify_password("é" * 35 + "e", hashed)


def test_multibyte_password_at_byte_limit_can_sign_up_and_log_in(client, db_session):
    password = "日本" * 12  # 72 bytes in UTF-8
    payload = {"username": "kanji_fan", "email": "kanji@mail.com", "password": password}

    assert client.post("/api/auth/signup", json=payload).status_code == 201
    response = client.post("/api/auth/login", json={"email": "kanji@mail.com", "password": password})

    assert response.status_code == 200


def test_multibyte_password_over_byte_limit_is_rejected(client, db_session):
    payload = {"username": "kanji_fan", "email": "kanji@mail.com", "password": "日本" * 12 + "x"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 400
