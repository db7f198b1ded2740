import pytest
from fastapi import HTTPException
from starlette.requests import Request

from marketplace.auth import service as auth_service
from marketplace.utils import security


def _request(headers=None, cookies=None):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        raw.append((b"cookie", "; ".join(f"{k}={v}" for k, v in cookies.items()).encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_bearer_header_wins_over_cookie():
    req = _request({"Authorization": "Bearer header-token"}, {"sb_access": "cookie-token"})
    assert security.user_token_from_request(req) == "header-token"

def test_cookie_fallback_and_absence():
    assert security.user_token_from_request(_request(cookies={"sb_access": "cookie-token"})) == "cookie-token"
    assert security.user_token_from_request(_request({"Authorization": "Bearer "})) is None

def test_get_current_user_without_token_is_401():
    with pytest.raises(HTTPException) as exc:
        security.get_current_user(_request())
    assert exc.value.status_code == 401

def test_get_current_user_resolves_identity(monkeypatch):
    monkeypatch.setattr(auth_service, "get_user_from_token", lambda token: {"id": "u1", "email": "a@b.co", "role": "customer"})
    user = security.get_current_user(_request({"Authorization": "Bearer t"}))
    assert user["id"] == "u1"

def test_get_current_user_expired_session(monkeypatch):
    def _boom(token):
        raise RuntimeError("invalid JWT")
    monkeypatch.setattr(auth_service, "get_user_from_token", _boom)
    with pytest.raises(HTTPException) as exc:
        security.get_current_user(_request({"Authorization": "Bearer t"}))
    assert exc.value.status_code == 401
    assert "Session expirée" in exc.value.detail

def test_require_admin_rejects_customers():
    with pytest.raises(HTTPException) as exc:
        security.require_admin({"id": "u1", "role": "customer"})
    assert exc.value.status_code == 403
    assert security.require_admin({"id": "a1", "role": "admin"})["id"] == "a1"

@pytest.mark.parametrize(
    "metadata,role",
    [({"role": "Vendor"}, "vendor"), ({"role": "admin"}, "admin"), ({"role": "superuser"}, "customer"), (None, "customer")],
)
def test_determine_role(metadata, role):
    assert auth_service.determine_role(metadata) == role

def test_get_user_from_token_normalises_supabase_user(monkeypatch):
    monkeypatch.setattr(
        auth_service,
        "_repo_get_user_from_token",
        lambda token: {"id": "u1", "email": "a@b.co", "user_metadata": {"role": "vendor", "full_name": "A"}},
    )
    assert auth_service.get_user_from_token("t") == {
        "id": "u1",
        "email": "a@b.co",
        "role": "vendor",
        "metadata": {"role": "vendor", "full_name": "A"},
    }
