# Overview: Pytest coverage for the identity provider adapters.

"""
Identity Provider Adapter Tests

The Supabase adapter is exercised against httpx.MockTransport; the local
adapter against the auth_identities/session_tokens tables.
"""

import json

import httpx
import pytest

from storecheer.models import SessionToken
from storecheer.services.errors import AdapterFailure, ValidationFailure
from storecheer.services.identity_provider import (
    InvalidCredentials,
    LocalIdentityProvider,
    SupabaseIdentityProvider,
    build_identity_provider,
)


SUPABASE_URL = "https://project.supabase.test"


def _provider(handler, **kwargs):
    return SupabaseIdentityProvider(
        url=SUPABASE_URL,
        anon_key="anon-key",
        service_role_key="service-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _user(uid, email=None):
    return {"id": uid, "email": email or f"{uid}@cheer.test"}


# =============================================================================
# SUPABASE ADAPTER
# =============================================================================


class TestSupabaseSignIn:

    def test_sign_in_returns_session(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json={
                "access_token": "jwt-abc",
                "expires_in": 3600,
                "user": _user("u-1", "alice@cheer.test"),
            })

        session = _provider(handler).sign_in("alice@cheer.test", "Password123!")

        assert session.access_token == "jwt-abc"
        assert session.identity.id == "u-1"
        assert session.expires_at is not None
        assert seen["url"] == f"{SUPABASE_URL}/auth/v1/token?grant_type=password"
        assert seen["apikey"] == "anon-key"

    def test_bad_credentials(self):
        def handler(request):
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})

        with pytest.raises(InvalidCredentials, match="Invalid login credentials"):
            _provider(handler).sign_in("alice@cheer.test", "wrong")

    def test_server_error_is_adapter_failure(self):
        def handler(request):
            return httpx.Response(500, text="upstream exploded")

        with pytest.raises(AdapterFailure):
            _provider(handler).sign_in("alice@cheer.test", "Password123!")

    def test_transport_error_is_adapter_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AdapterFailure, match="unreachable"):
            _provider(handler).sign_in("alice@cheer.test", "Password123!")


class TestSupabaseSession:

    def test_current_user(self):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer jwt-abc"
            return httpx.Response(200, json=_user("u-1"))

        identity = _provider(handler).get_current_user("jwt-abc")
        assert identity.id == "u-1"

    def test_expired_token_is_none(self):
        def handler(request):
            return httpx.Response(401, json={"msg": "JWT expired"})

        assert _provider(handler).get_current_user("jwt-old") is None

    def test_malformed_user_payload(self):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(AdapterFailure):
            _provider(handler).get_current_user("jwt-abc")


class TestSupabaseAdmin:

    def test_admin_create_user(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_user("u-new", "new@cheer.test"))

        auth_id = _provider(handler).admin_create_user("new@cheer.test", "Password123!")

        assert auth_id == "u-new"
        assert seen["path"] == "/auth/v1/admin/users"
        assert seen["auth"] == "Bearer service-key"
        assert seen["body"]["email_confirm"] is True

    def test_admin_create_rejected(self):
        def handler(request):
            return httpx.Response(422, json={"msg": "A user with this email address has already been registered"})

        with pytest.raises(AdapterFailure, match="already been registered"):
            _provider(handler).admin_create_user("dup@cheer.test", "Password123!")

    def test_list_users_pages_until_short_page(self, monkeypatch):
        monkeypatch.setattr(SupabaseIdentityProvider, "LIST_PAGE_SIZE", 2)
        pages = {
            "1": [_user("u-1"), _user("u-2")],
            "2": [_user("u-3")],
        }
        requested = []

        def handler(request):
            page = request.url.params["page"]
            requested.append(page)
            return httpx.Response(200, json={"users": pages[page], "aud": "authenticated"})

        records = _provider(handler).admin_list_users()

        assert [r.id for r in records] == ["u-1", "u-2", "u-3"]
        assert requested == ["1", "2"]

    def test_list_failure_mid_pagination_raises(self, monkeypatch):
        """A partial listing is never returned."""
        monkeypatch.setattr(SupabaseIdentityProvider, "LIST_PAGE_SIZE", 1)

        def handler(request):
            if request.url.params["page"] == "1":
                return httpx.Response(200, json={"users": [_user("u-1")]})
            return httpx.Response(503, text="unavailable")

        with pytest.raises(AdapterFailure):
            _provider(handler).admin_list_users()

    def test_list_without_users_field(self):
        def handler(request):
            return httpx.Response(200, json={"message": "ok"})

        with pytest.raises(AdapterFailure, match="no users field"):
            _provider(handler).admin_list_users()


class TestProviderFactory:

    def test_missing_configuration(self):
        with pytest.raises(AdapterFailure, match="SUPABASE_URL"):
            SupabaseIdentityProvider(url=None, anon_key="a", service_role_key="s")

    def test_build_supabase(self):
        provider = build_identity_provider({
            "IDENTITY_PROVIDER": "supabase",
            "SUPABASE_URL": SUPABASE_URL,
            "SUPABASE_SERVICE_ROLE_KEY": "service-key",
        })
        assert isinstance(provider, SupabaseIdentityProvider)
        assert provider.base_url == f"{SUPABASE_URL}/auth/v1"

    def test_build_local_and_unknown(self):
        assert isinstance(build_identity_provider({"IDENTITY_PROVIDER": "local"}), LocalIdentityProvider)
        with pytest.raises(AdapterFailure):
            build_identity_provider({"IDENTITY_PROVIDER": "ldap"})


# =============================================================================
# LOCAL ADAPTER
# =============================================================================


class TestLocalProvider:

    def test_sign_up_sign_in_sign_out(self, db_session):
        provider = LocalIdentityProvider()
        identity = provider.sign_up("Local@Cheer.test", "Password123!")
        assert identity.email == "local@cheer.test"

        session = provider.sign_in("local@cheer.test", "Password123!")
        assert session.identity.id == identity.id
        assert provider.get_current_user(session.access_token).id == identity.id

        provider.sign_out(session.access_token)
        assert provider.get_current_user(session.access_token) is None
        token_row = db_session.query(SessionToken).one()
        assert token_row.is_revoked is True

    def test_wrong_password(self, db_session):
        provider = LocalIdentityProvider()
        provider.sign_up("local@cheer.test", "Password123!")

        with pytest.raises(InvalidCredentials):
            provider.sign_in("local@cheer.test", "Password123?")

    def test_weak_password_is_validation_failure(self, db_session):
        with pytest.raises(ValidationFailure, match="at least 8"):
            LocalIdentityProvider().sign_up("weak@cheer.test", "short")

    def test_duplicate_email(self, db_session):
        provider = LocalIdentityProvider()
        provider.admin_create_user("dup@cheer.test", "Password123!")
        with pytest.raises(ValidationFailure, match="already been registered"):
            provider.admin_create_user("dup@cheer.test", "Password123!")

    def test_admin_list_users(self, db_session):
        provider = LocalIdentityProvider()
        first = provider.admin_create_user("one@cheer.test", "Password123!")
        second = provider.admin_create_user("two@cheer.test", "Password123!")

        assert {r.id for r in provider.admin_list_users()} == {first, second}

    def test_unknown_token(self, db_session):
        assert LocalIdentityProvider().get_current_user("not-a-token") is None
