"""
tests/test_issue_api.py -- Integration tests for the issue HTTP surfaces.

Covers the public read API (/api/issue) and the authenticated mutation API
(/api/v1/issues) through the real ASGI stack, including:
  - POST then GET by id returns matching fields
  - 400 for missing title/userId, 404 for unknown ids, 422 for bad enums
  - permissive CORS headers on the list response
  - list reads reflect writes immediately (cache invalidation)
  - mutation endpoints answer unauthenticated callers with the 401 envelope
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _signup(client: TestClient, email: str = "a@b.com", password: str = "secret1") -> str:
    resp = client.post("/signup", data={"email": email, "password": password, "confirmPassword": password})
    assert resp.status_code == 201
    me = client.get("/api/v1/auth/me")
    assert me.status_code == 200
    return me.json()["id"]


class TestReadApi:
    def test_post_then_get_by_id(self, client: TestClient, make_user) -> None:
        user = make_user()
        resp = client.post(
            "/api/issue",
            json={"title": "Fix bug", "userId": user.id, "description": "Steps", "status": "todo", "priority": "high"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Issue Added successfully"
        created = body["issue"]

        fetched = client.get(f"/api/issue/{created['id']}")
        assert fetched.status_code == 200
        data = fetched.json()["data"]
        assert data == created
        assert data["title"] == "Fix bug"
        assert data["description"] == "Steps"
        assert data["status"] == "todo"
        assert data["priority"] == "high"
        assert data["userId"] == user.id
        assert data["createdAt"]
        assert data["user"] == {"id": user.id, "email": user.email}

    def test_post_defaults(self, client: TestClient, make_user) -> None:
        user = make_user()
        issue = client.post("/api/issue", json={"title": "Fix bug", "userId": user.id}).json()["issue"]
        assert issue["status"] == "backlog"
        assert issue["priority"] == "low"
        assert issue["description"] is None

    def test_post_requires_title_and_user_id(self, client: TestClient, make_user) -> None:
        user = make_user()
        for payload in ({"userId": user.id}, {"title": "Fix bug"}, {"title": "", "userId": user.id}):
            resp = client.post("/api/issue", json=payload)
            assert resp.status_code == 400
            assert resp.json() == {"message": "Issues title and user id are required"}

    def test_post_title_length_is_bounded(self, client: TestClient, make_user) -> None:
        user = make_user()
        for title in ("ab", "x" * 101):
            resp = client.post("/api/issue", json={"title": title, "userId": user.id})
            assert resp.status_code == 400
            assert resp.json() == {"message": "Issue title must be 3 to 100 characters"}
        assert client.get("/api/issue").json()["data"] == []

    def test_post_invalid_enum_is_422(self, client: TestClient, make_user) -> None:
        user = make_user()
        resp = client.post("/api/issue", json={"title": "Fix bug", "userId": user.id, "status": "closed"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        assert client.get("/api/issue").json()["data"] == []

    def test_post_unknown_user_is_generic_500(self, client: TestClient) -> None:
        resp = client.post("/api/issue", json={"title": "Fix bug", "userId": "no-such-user"})
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to add issue"}

    def test_get_unknown_id_is_404(self, client: TestClient) -> None:
        resp = client.get("/api/issue/9999")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Could not retrieve the issue"}

    def test_list_has_cors_headers(self, client: TestClient) -> None:
        resp = client.get("/api/issue")
        assert resp.status_code == 200
        assert resp.json() == {"data": []}
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"

    def test_list_reflects_writes_immediately(self, client: TestClient, make_user) -> None:
        user = make_user()
        client.post("/api/issue", json={"title": "First", "userId": user.id})
        assert [i["title"] for i in client.get("/api/issue").json()["data"]] == ["First"]

        client.post("/api/issue", json={"title": "Second", "userId": user.id})
        assert [i["title"] for i in client.get("/api/issue").json()["data"]] == ["Second", "First"]


class TestMutationApi:
    def test_unauthenticated_create_is_401_envelope(self, client: TestClient) -> None:
        resp = client.post("/api/v1/issues", json={"title": "Fix bug", "status": "todo", "priority": "high"})
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Unauthorized access", "error": "Unauthorized"}

    def test_signed_in_create_update_delete(self, client: TestClient) -> None:
        user_id = _signup(client)

        created = client.post(
            "/api/v1/issues",
            json={"title": "Fix bug", "status": "todo", "priority": "high", "userId": user_id},
        )
        assert created.status_code == 201
        assert created.json() == {"success": True, "message": "Issue created successfully"}

        [issue] = client.get("/api/issue").json()["data"]
        assert issue["status"] == "todo"

        updated = client.patch(f"/api/v1/issues/{issue['id']}", json={"status": "done"})
        assert updated.status_code == 200
        assert updated.json()["message"] == "Issue updated successfully"
        assert client.get("/api/issue").json()["data"][0]["status"] == "done"

        deleted = client.delete(f"/api/v1/issues/{issue['id']}")
        assert deleted.status_code == 200
        assert deleted.json()["message"] == f"Deleted issue with id of {issue['id']} successfully"
        assert client.get("/api/issue").json()["data"] == []

    def test_validation_errors_come_back_in_the_envelope(self, client: TestClient) -> None:
        user_id = _signup(client)
        resp = client.post("/api/v1/issues", json={"title": "ab", "status": "todo", "priority": "high", "userId": user_id})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["errors"] == {"title": ["Title must be at least 3 characters"]}

    def test_non_owner_delete_leaves_issue(self, client: TestClient, make_user) -> None:
        owner = make_user("owner@b.com")
        issue = client.post("/api/issue", json={"title": "Owned", "userId": owner.id}).json()["issue"]

        _signup(client, "other@b.com")
        resp = client.delete(f"/api/v1/issues/{issue['id']}")
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert client.get(f"/api/issue/{issue['id']}").status_code == 200
