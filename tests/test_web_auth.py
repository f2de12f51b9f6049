"""
tests/test_web_auth.py -- Integration tests for the form-submission auth routes.

These run through the real ASGI stack (follow_redirects=False) and assert on
status codes, the result envelope, Set-Cookie attributes and the Location
header of the sign-out redirect.

Coverage:
  - sign-up sets an httpOnly session cookie and signs the user in
  - sign-in with correct/incorrect credentials
  - missing form fields come back as field errors, not a framework 422
  - sign-out revokes the session, deletes the cookie and 303s to /signin
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _signup_form(email: str = "a@b.com", password: str = "secret1") -> dict:
    return {"email": email, "password": password, "confirmPassword": password}


class TestSignUpRoute:
    def test_sign_up_sets_session_cookie(self, client: TestClient) -> None:
        resp = client.post("/signup", data=_signup_form())
        assert resp.status_code == 201
        assert resp.json() == {"success": True, "message": "User has been successfully created"}
        set_cookie = resp.headers["set-cookie"].lower()
        assert set_cookie.startswith("session=")
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie
        assert "max-age=604800" in set_cookie
        assert resp.headers["cache-control"] == "no-store"

        me = client.get("/api/v1/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "a@b.com"
        assert "password" not in me.json()

    def test_duplicate_sign_up_is_409(self, client: TestClient) -> None:
        client.post("/signup", data=_signup_form())
        client.cookies.clear()
        resp = client.post("/signup", data=_signup_form())
        assert resp.status_code == 409
        assert resp.json()["errors"] == {"email": ["This email has already been used"]}
        assert "set-cookie" not in resp.headers

    def test_missing_fields_are_field_errors(self, client: TestClient) -> None:
        resp = client.post("/signup", data={})
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Validation Failed"
        assert set(body["errors"]) == {"email", "password", "confirmPassword"}


class TestSignInRoute:
    def test_correct_credentials(self, client: TestClient, make_user) -> None:
        make_user("a@b.com", "secret1")
        resp = client.post("/signin", data={"email": "a@b.com", "password": "secret1"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Signed in successfully"}
        assert resp.headers["set-cookie"].startswith("session=")
        assert client.get("/api/v1/auth/me").status_code == 200

    def test_wrong_password(self, client: TestClient, make_user) -> None:
        make_user("a@b.com", "secret1")
        resp = client.post("/signin", data={"email": "a@b.com", "password": "wrong-one"})
        assert resp.status_code == 401
        assert resp.json() == {
            "success": False,
            "message": "Invalid email or password",
            "errors": {"email": ["Invalid email or password"]},
        }
        assert "set-cookie" not in resp.headers
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_invalid_email(self, client: TestClient) -> None:
        resp = client.post("/signin", data={"email": "nope", "password": "secret1"})
        assert resp.status_code == 400
        assert resp.json()["errors"] == {"email": ["Invalid email format"]}


class TestSignOutRoute:
    def test_sign_out_revokes_and_redirects(self, client: TestClient, session_store) -> None:
        client.post("/signup", data=_signup_form())
        session_id = client.cookies.get("session")
        assert session_store.resolve(session_id) is not None

        resp = client.post("/signout")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/signin"
        set_cookie = resp.headers["set-cookie"].lower()
        assert set_cookie.startswith("session=")
        assert "max-age=0" in set_cookie

        assert session_store.resolve(session_id) is None
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_sign_out_without_session_still_redirects(self, client: TestClient) -> None:
        resp = client.post("/signout")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/signin"

    def test_stale_cookie_is_unauthorized(self, client: TestClient) -> None:
        client.cookies.set("session", "stale-or-forged")
        resp = client.get("/api/v1/auth/me")
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "unauthorized", "message": "Authentication required."}}
