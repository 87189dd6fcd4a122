"""
Tests for token verification and role resolution.
"""

import asyncio
import time

import pytest
from fastapi import HTTPException
from jose import jwt


SECRET = "test-jwt-secret-with-enough-length"


def make_token(sub="user-1", audience="authenticated", expires_in=3600, secret=SECRET, **claims):
    payload = {
        "sub": sub,
        "aud": audience,
        "exp": int(time.time()) + expires_in,
        "email": "sarah@clinic.example.com",
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


class TestDecodeToken:
    """Test local and remote token verification."""

    def test_local_verification(self, fake_supabase, monkeypatch):
        from lea.auth.middleware import decode_token

        monkeypatch.setenv("SUPABASE_JWT_SECRET", SECRET)
        data = decode_token(make_token(user_metadata={"role": "client"}))

        assert data["sub"] == "user-1"
        assert data["email"] == "sarah@clinic.example.com"
        assert data["user_metadata"] == {"role": "client"}

    def test_local_rejects_wrong_secret(self, fake_supabase, monkeypatch):
        from lea.auth.middleware import decode_token

        monkeypatch.setenv("SUPABASE_JWT_SECRET", SECRET)
        with pytest.raises(HTTPException) as exc:
            decode_token(make_token(secret="another-secret-entirely"))
        assert exc.value.status_code == 401

    def test_local_rejects_expired(self, fake_supabase, monkeypatch):
        from lea.auth.middleware import decode_token

        monkeypatch.setenv("SUPABASE_JWT_SECRET", SECRET)
        with pytest.raises(HTTPException) as exc:
            decode_token(make_token(expires_in=-60))
        assert exc.value.status_code == 401

    def test_local_rejects_wrong_audience(self, fake_supabase, monkeypatch):
        from lea.auth.middleware import decode_token

        monkeypatch.setenv("SUPABASE_JWT_SECRET", SECRET)
        with pytest.raises(HTTPException) as exc:
            decode_token(make_token(audience="anon"))
        assert exc.value.status_code == 401

    def test_remote_verification(self, fake_supabase, practitioner):
        from lea.auth.middleware import decode_token

        data = decode_token(practitioner.token)
        assert data["sub"] == practitioner.id

    def test_remote_rejects_unknown_token(self, fake_supabase):
        from lea.auth.middleware import decode_token

        with pytest.raises(HTTPException) as exc:
            decode_token("not-a-token")
        assert exc.value.status_code == 401

    def test_remote_without_database(self, monkeypatch):
        from lea.auth.middleware import decode_token
        from lea.db.client import reset_clients

        for name in ("SUPABASE_URL", "DATABASE_SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_JWT_SECRET"):
            monkeypatch.delenv(name, raising=False)
        reset_clients()

        with pytest.raises(HTTPException) as exc:
            decode_token("anything")
        assert exc.value.status_code == 503
        reset_clients()


class TestBuildUser:
    """Test role resolution order."""

    def test_profile_role_wins(self, fake_supabase):
        from lea.auth.middleware import build_user

        fake_supabase.insert("user_profiles", {"id": "u1", "role": "admin", "first_name": "Lea"})
        user = build_user({"sub": "u1", "email": "a@b.c", "user_metadata": {"role": "client"}})

        assert user.role == "admin"
        assert user.is_admin
        assert user.first_name == "Lea"

    def test_metadata_role_without_profile(self, fake_supabase):
        from lea.auth.middleware import build_user

        user = build_user({"sub": "u2", "email": "a@b.c", "user_metadata": {"role": "client"}})

        assert user.role == "client"
        assert not user.is_staff

    def test_defaults_to_practitioner(self, fake_supabase):
        from lea.auth.middleware import build_user

        user = build_user({"sub": "u3", "email": None})

        assert user.role == "practitioner"
        assert user.is_staff
        assert not user.is_admin

    def test_profile_lookup_failure_falls_back_to_metadata(self, fake_supabase):
        from postgrest.exceptions import APIError
        from lea.auth.middleware import build_user

        fake_supabase.errors["user_profiles"] = APIError({"message": "boom", "code": "XX000"})
        user = build_user({"sub": "u4", "user_metadata": {"role": "student"}})

        assert user.role == "student"


class TestOptionalUser:
    """Test the dependency for routes open to anonymous callers."""

    def test_no_credentials(self, fake_supabase):
        from lea.auth import get_current_user_optional

        assert asyncio.run(get_current_user_optional(None)) is None

    def test_valid_token(self, fake_supabase, practitioner):
        from fastapi.security import HTTPAuthorizationCredentials
        from lea.auth import get_current_user_optional

        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=practitioner.token)
        user = asyncio.run(get_current_user_optional(credentials))

        assert user.id == practitioner.id
        assert user.role == "practitioner"

    def test_rejected_token(self, fake_supabase):
        from fastapi.security import HTTPAuthorizationCredentials
        from lea.auth import get_current_user_optional

        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="junk")
        assert asyncio.run(get_current_user_optional(credentials)) is None


class TestAuthDependencies:
    """Test the dependencies through real routes."""

    def test_missing_token(self, api):
        response = api.get("/api/auth/user")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_invalid_token(self, api):
        response = api.get("/api/auth/user", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401

    def test_current_user(self, api, practitioner):
        response = api.get("/api/auth/user", headers=practitioner.headers)

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == practitioner.id
        assert body["role"] == "practitioner"
        assert body["first_name"] == "Sarah"

    def test_local_jwt_accepted_by_routes(self, api, fake_supabase, monkeypatch):
        monkeypatch.setenv("SUPABASE_JWT_SECRET", SECRET)
        token = make_token(sub="local-user", user_metadata={"role": "practitioner", "first_name": "Jo"})

        response = api.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["first_name"] == "Jo"

    def test_staff_required(self, api, client_account):
        response = api.post(
            "/api/treatments",
            json={"name": "Facial", "price": "50.00"},
            headers=client_account.headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Practitioner access required"

    def test_admin_required(self, api, practitioner):
        response = api.get("/api/admin/debug", headers=practitioner.headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"
