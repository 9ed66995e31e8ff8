# Overview: Identity provider adapters (local credentials table or Supabase GoTrue REST API).

"""
Identity Provider Adapter

WHAT: One interface over "who holds credentials": sign-in, sign-up, session
lookup, and server-side admin create/list.
WHY: The provider is the sole source of truth for whether a credential
exists. Ghost reconciliation and admin user creation depend on it, and
neither may care which provider is configured.

Adapters own timeouts. Core logic never retries provider calls; any
transport error, non-2xx response or malformed payload surfaces as
AdapterFailure.

REFERENCES:
    - GoTrue REST API: https://supabase.com/docs/reference/api (auth/v1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx
from flask import current_app

from . import auth_service, session_service
from .auth_service import CredentialError, PasswordValidationError
from .errors import AdapterFailure, ValidationFailure
from storecheer.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class AuthIdentityRecord:
    """Provider-side user: opaque id plus email."""
    id: str
    email: str | None

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email}


@dataclass
class AuthSession:
    """Result of a successful sign-in."""
    access_token: str
    identity: AuthIdentityRecord
    expires_at: datetime | None = None


class IdentityProvider:
    """Interface implemented by every identity provider adapter."""

    name = "abstract"

    def sign_in(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    def sign_up(self, email: str, password: str) -> AuthIdentityRecord:
        raise NotImplementedError

    def get_current_user(self, access_token: str) -> AuthIdentityRecord | None:
        raise NotImplementedError

    def sign_out(self, access_token: str) -> None:
        raise NotImplementedError

    def admin_create_user(self, email: str, password: str) -> str:
        """Create a confirmed user server-side; returns the provider user id."""
        raise NotImplementedError

    def admin_list_users(self) -> list[AuthIdentityRecord]:
        """Complete provider user set. Must raise rather than return a partial list."""
        raise NotImplementedError


class InvalidCredentials(ValidationFailure):
    """Raised by sign_in when email/password do not match."""
    pass


# =============================================================================
# LOCAL PROVIDER
# =============================================================================

class LocalIdentityProvider(IdentityProvider):
    """Provider backed by the auth_identities / session_tokens tables."""

    name = "local"

    def sign_in(self, email: str, password: str) -> AuthSession:
        identity = auth_service.authenticate(email, password)
        if not identity:
            raise InvalidCredentials("Invalid login credentials")

        session, token = session_service.create_session(identity.id)
        return AuthSession(
            access_token=token,
            identity=AuthIdentityRecord(id=identity.id, email=identity.email),
            expires_at=session.expires_at,
        )

    def sign_up(self, email: str, password: str) -> AuthIdentityRecord:
        try:
            identity = auth_service.create_identity(email, password)
        except (CredentialError, PasswordValidationError) as e:
            raise ValidationFailure(str(e)) from e
        return AuthIdentityRecord(id=identity.id, email=identity.email)

    def get_current_user(self, access_token: str) -> AuthIdentityRecord | None:
        identity = session_service.validate_session(access_token)
        if not identity:
            return None
        return AuthIdentityRecord(id=identity.id, email=identity.email)

    def sign_out(self, access_token: str) -> None:
        session_service.revoke_session(access_token)

    def admin_create_user(self, email: str, password: str) -> str:
        return self.sign_up(email, password).id

    def admin_list_users(self) -> list[AuthIdentityRecord]:
        return [
            AuthIdentityRecord(id=identity.id, email=identity.email)
            for identity in auth_service.list_identities()
        ]


# =============================================================================
# SUPABASE (GoTrue) PROVIDER
# =============================================================================

class SupabaseIdentityProvider(IdentityProvider):
    """
    Provider backed by a Supabase project's GoTrue REST API.

    Public calls (sign-in, sign-up, current user) use the anon key; admin
    calls use the service role key, which must never leave the server.
    """

    name = "supabase"
    LIST_PAGE_SIZE = 1000

    def __init__(
        self,
        url: str | None,
        anon_key: str | None,
        service_role_key: str | None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        missing = []
        if not url:
            missing.append("SUPABASE_URL")
        if not service_role_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        if missing:
            raise AdapterFailure(f"Identity provider misconfigured: missing {' and '.join(missing)}")

        self.base_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key or service_role_key
        self.service_role_key = service_role_key
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def _public_headers(self, access_token: str | None = None) -> dict:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _admin_headers(self) -> dict:
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, *, headers: dict, **kwargs) -> httpx.Response:
        try:
            with self._client() as client:
                return client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"[IDENTITY] {method} {path} failed: {e}")
            raise AdapterFailure(f"Identity provider unreachable: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            for key in ("msg", "error_description", "message", "error"):
                if body.get(key):
                    return str(body[key])
        return f"HTTP {response.status_code}"

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(
                f"[IDENTITY] {action} rejected: status={response.status_code}, message={message}"
            )
            raise AdapterFailure(f"{action} failed: {message}")

    @staticmethod
    def _record(payload: dict) -> AuthIdentityRecord:
        # signup returns the user either bare or wrapped in {"user": ...}
        user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        if not user or not user.get("id"):
            raise AdapterFailure("Identity provider returned no user")
        return AuthIdentityRecord(id=str(user["id"]), email=user.get("email"))

    def sign_in(self, email: str, password: str) -> AuthSession:
        response = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            headers=self._public_headers(),
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401):
            raise InvalidCredentials(self._error_message(response))
        self._raise_for_status(response, "Sign-in")

        body = response.json()
        expires_at = None
        if body.get("expires_in"):
            expires_at = utcnow() + timedelta(seconds=int(body["expires_in"]))
        return AuthSession(
            access_token=body["access_token"],
            identity=self._record(body),
            expires_at=expires_at,
        )

    def sign_up(self, email: str, password: str) -> AuthIdentityRecord:
        response = self._request(
            "POST",
            "/signup",
            headers=self._public_headers(),
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 422):
            raise ValidationFailure(self._error_message(response))
        self._raise_for_status(response, "Sign-up")
        return self._record(response.json())

    def get_current_user(self, access_token: str) -> AuthIdentityRecord | None:
        if not access_token:
            return None
        response = self._request("GET", "/user", headers=self._public_headers(access_token))
        if response.status_code in (401, 403):
            return None
        self._raise_for_status(response, "Session lookup")
        return self._record(response.json())

    def sign_out(self, access_token: str) -> None:
        response = self._request("POST", "/logout", headers=self._public_headers(access_token))
        if response.status_code in (401, 403):
            return
        self._raise_for_status(response, "Sign-out")

    def admin_create_user(self, email: str, password: str) -> str:
        response = self._request(
            "POST",
            "/admin/users",
            headers=self._admin_headers(),
            json={"email": email, "password": password, "email_confirm": True},
        )
        self._raise_for_status(response, "Auth user creation")
        record = self._record(response.json())
        logger.info(f"[IDENTITY] Created auth user {record.id} for {email}")
        return record.id

    def admin_list_users(self) -> list[AuthIdentityRecord]:
        records: list[AuthIdentityRecord] = []
        page = 1
        while True:
            response = self._request(
                "GET",
                "/admin/users",
                params={"page": page, "per_page": self.LIST_PAGE_SIZE},
                headers=self._admin_headers(),
            )
            self._raise_for_status(response, "Auth user listing")

            body = response.json()
            users = body.get("users") if isinstance(body, dict) else None
            if users is None:
                raise AdapterFailure("Auth user listing failed: response has no users field")

            records.extend(self._record(u) for u in users)
            if len(users) < self.LIST_PAGE_SIZE:
                return records
            page += 1


# =============================================================================
# FACTORY
# =============================================================================

def build_identity_provider(config) -> IdentityProvider:
    provider = (config.get("IDENTITY_PROVIDER") or "local").lower()
    if provider == "local":
        return LocalIdentityProvider()
    if provider == "supabase":
        return SupabaseIdentityProvider(
            url=config.get("SUPABASE_URL"),
            anon_key=config.get("SUPABASE_ANON_KEY"),
            service_role_key=config.get("SUPABASE_SERVICE_ROLE_KEY"),
            timeout=config.get("IDENTITY_PROVIDER_TIMEOUT", 10.0),
        )
    raise AdapterFailure(f"Unknown identity provider: {provider}")


def init_app(app) -> None:
    """Attach the configured provider; tests may replace it via set_identity_provider."""
    app.extensions["identity_provider"] = build_identity_provider(app.config)


def get_identity_provider() -> IdentityProvider:
    return current_app.extensions["identity_provider"]


def set_identity_provider(app, provider: IdentityProvider) -> None:
    app.extensions["identity_provider"] = provider
