"""Unit tests for auth: token verification, RBAC and provider-backed endpoints."""

import json
import time

import httpx
import pytest
from fastapi import HTTPException
from jose import jwt
from jose.exceptions import JWTError

from app.core.config import settings
from app.core.deps import get_current_admin, require_permission
from app.core.exceptions import AuthProviderError
from app.core.rbac import PermissionAction, RoleType, ROLE_PERMISSIONS, permissions_for
from app.core.security import decode_access_token, role_from_claims
from app.schemas.auth import CurrentAdmin, ForgotPasswordRequest, LoginRequest, RegisterRequest
from app.services.auth_provider import AuthProviderClient

SECRET = "test-secret-with-enough-length-for-hs256"


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", SECRET)


def make_token(role="editor", exp_offset=3600, aud="authenticated", secret=SECRET, **claims):
    payload = {
        "sub": "5f0c3c1e-0000-4000-8000-000000000001",
        "email": "editor@example.com",
        "aud": aud,
        "exp": int(time.time()) + exp_offset,
        "app_metadata": {"role": role} if role else {},
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def provider_with(handler):
    return AuthProviderClient(
        base_url="https://auth.test",
        anon_key="anon",
        transport=httpx.MockTransport(handler),
    )


# ── JWT ────────────────────────────────────────────

def test_decode_valid_token():
    payload = decode_access_token(make_token())
    assert payload["email"] == "editor@example.com"
    assert role_from_claims(payload) == "editor"


def test_expired_token():
    with pytest.raises(JWTError):
        decode_access_token(make_token(exp_offset=-10))


def test_wrong_audience():
    with pytest.raises(JWTError):
        decode_access_token(make_token(aud="anon"))


def test_wrong_secret():
    with pytest.raises(JWTError):
        decode_access_token(make_token(secret="another-secret-entirely-0123456789"))


def test_unconfigured_secret_rejects(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", "")
    with pytest.raises(JWTError):
        decode_access_token(make_token())


def test_role_from_claims_missing():
    assert role_from_claims({}) is None
    assert role_from_claims({"app_metadata": None}) is None


# ── Permission matrix sanity ──────────────────────

def test_rbac_matrix():
    # Admin has ALL permissions
    assert set(ROLE_PERMISSIONS[RoleType.ADMIN]) == set(PermissionAction)

    # Viewer subset of Editor subset of Admin
    viewer = set(ROLE_PERMISSIONS[RoleType.VIEWER])
    editor = set(ROLE_PERMISSIONS[RoleType.EDITOR])
    admin = set(ROLE_PERMISSIONS[RoleType.ADMIN])
    assert viewer < editor < admin


def test_deletes_are_admin_only():
    editor = permissions_for("editor")
    assert "deal:delete" not in editor
    assert "store:delete" not in editor
    assert "deal:delete" in permissions_for("admin")


def test_permissions_for_unknown_and_missing_role():
    assert permissions_for("superuser") == []
    assert permissions_for(None) == permissions_for("viewer")


# ── Dependencies ───────────────────────────────────

@pytest.mark.asyncio
async def test_get_current_admin():
    admin = await get_current_admin(make_token(role="admin"))

    assert admin.role == "admin"
    assert admin.email == "editor@example.com"
    assert "store:delete" in admin.permissions


@pytest.mark.asyncio
async def test_get_current_admin_defaults_to_viewer():
    admin = await get_current_admin(make_token(role=None))

    assert admin.role == "viewer"
    assert "deal:create" not in admin.permissions


@pytest.mark.asyncio
async def test_get_current_admin_invalid_token():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_admin("not-a-jwt")

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_require_permission_forbidden():
    checker = require_permission("deal:delete")
    viewer = CurrentAdmin(id="u1", email="v@example.com", role="viewer", permissions=permissions_for("viewer"))

    with pytest.raises(HTTPException) as exc_info:
        await checker(viewer)

    assert exc_info.value.status_code == 403
    assert "deal:delete" in exc_info.value.detail


@pytest.mark.asyncio
async def test_require_permission_all_required():
    checker = require_permission("store:update", "asset:upload")
    editor = CurrentAdmin(id="u1", email="e@example.com", role="editor", permissions=permissions_for("editor"))

    assert await checker(editor) is editor


# ── Provider-backed endpoints ──────────────────────

@pytest.mark.asyncio
async def test_login_returns_provider_token():
    from app.api.auth import login

    def handler(request):
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        assert request.headers["apikey"] == "anon"
        assert json.loads(request.content) == {"email": "a@example.com", "password": "secret123"}
        return httpx.Response(200, json={
            "access_token": "tok",
            "expires_in": 3600,
            "refresh_token": "ref",
            "user": {"id": "uid-1", "email": "a@example.com"},
        })

    result = await login(LoginRequest(email="a@example.com", password="secret123"), provider_with(handler))

    assert result.access_token == "tok"
    assert result.token_type == "bearer"
    assert result.user_id == "uid-1"


@pytest.mark.asyncio
async def test_login_bad_credentials():
    from app.api.auth import login

    def handler(request):
        return httpx.Response(400, json={"error_description": "Invalid login credentials"})

    with pytest.raises(HTTPException) as exc_info:
        await login(LoginRequest(email="a@example.com", password="wrongpass"), provider_with(handler))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_register_reports_confirmation():
    from app.api.auth import register

    def handler(request):
        assert request.url.path == "/auth/v1/signup"
        assert request.url.params["redirect_to"] == "https://admin.test/welcome"
        return httpx.Response(200, json={
            "id": "uid-2",
            "email": "new@example.com",
            "confirmation_sent_at": "2025-06-01T00:00:00Z",
        })

    result = await register(
        RegisterRequest(email="new@example.com", password="secret123", redirect_to="https://admin.test/welcome"),
        provider_with(handler),
    )

    assert result.user_id == "uid-2"
    assert result.confirmation_sent is True


@pytest.mark.asyncio
async def test_register_rejected_input():
    from app.api.auth import register

    def handler(request):
        return httpx.Response(422, json={"msg": "Password should be at least 6 characters"})

    with pytest.raises(HTTPException) as exc_info:
        await register(RegisterRequest(email="new@example.com", password="secret123"), provider_with(handler))

    assert exc_info.value.status_code == 400
    assert "Password" in exc_info.value.detail


@pytest.mark.asyncio
async def test_forgot_password():
    from app.api.auth import forgot_password

    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json={})

    result = await forgot_password(ForgotPasswordRequest(email="a@example.com"), provider_with(handler))

    assert calls == ["/auth/v1/recover"]
    assert "reset link" in result.message


@pytest.mark.asyncio
async def test_provider_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AuthProviderError) as exc_info:
        await provider_with(handler).sign_in("a@example.com", "secret123")

    assert exc_info.value.status_code == 502
    assert exc_info.value.upstream_status is None
