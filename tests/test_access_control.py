# tests/test_access_control.py
import pytest

from blog_api.core import context as ctx_mod
from blog_api.core.context import Context, Denial, authorize
from blog_api.core.models_user import UserRole

from conftest import create_user, login


def _ctx(role: UserRole) -> Context:
    return Context(user_id=1, username=f"{role.value}-1", role=role)


def test_admin_is_implicitly_allowed():
    assert authorize(_ctx(UserRole.admin), ["editor"]) is None
    assert authorize(_ctx(UserRole.admin), UserRole.user) is None


def test_role_must_be_listed():
    assert authorize(_ctx(UserRole.user), ["editor"]) is Denial.forbidden
    assert authorize(_ctx(UserRole.editor), ["editor"]) is None
    assert authorize(_ctx(UserRole.editor), "admin") is Denial.forbidden


def test_missing_identity_is_unauthenticated():
    assert authorize(None, ["user", "editor", "admin"]) is Denial.unauthenticated


def test_from_payload_rejects_unknown_role():
    from blog_api.core.errors import InvalidTokenError

    with pytest.raises(InvalidTokenError):
        Context.from_payload({"id": 1, "username": "x", "role": "root"})


def test_create_requires_authentication(client):
    r = client.post("/", json={"title": "t", "author": "a"})
    assert r.status_code == 401
    assert r.json()["code"] == "unauthenticated"


def test_user_role_is_forbidden_editor_allowed(client):
    create_user("reader", UserRole.user)
    create_user("writer", UserRole.editor)

    r = client.post("/", json={"title": "t", "author": "a"}, headers=login(client, "reader"))
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"

    r = client.post("/", json={"title": "t", "author": "a"}, headers=login(client, "writer"))
    assert r.status_code == 201


def test_admin_passes_editor_gate(client):
    create_user("boss", UserRole.admin)
    r = client.post("/", json={"title": "t", "author": "a"}, headers=login(client, "boss"))
    assert r.status_code == 201


def test_invalid_token_and_bad_scheme_are_401(client):
    r = client.post("/", json={"title": "t", "author": "a"},
                    headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json()["code"] == "invalid_token"

    r = client.post("/", json={"title": "t", "author": "a"},
                    headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert r.status_code == 401


def test_public_routes_ignore_missing_token(client):
    assert client.get("/").status_code == 200


def test_denials_are_audited(client, monkeypatch):
    events = []
    monkeypatch.setattr(ctx_mod, "emit_warning", lambda event, **kw: events.append((event, kw)))
    create_user("peeker", UserRole.user)
    headers = login(client, "peeker")

    client.delete("/1", headers=headers)
    client.delete("/1")

    denied = [kw for event, kw in events if event == "access_denied"]
    assert denied[0]["actor"] == "peeker"
    assert denied[0]["reason"] == "forbidden"
    assert denied[0]["method"] == "DELETE"
    assert denied[0]["path"] == "/1"
    assert denied[1]["actor"] == "anonymous"
    assert denied[1]["reason"] == "unauthenticated"
