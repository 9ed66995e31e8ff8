"""
Pytest fixtures for StoreCheer backend tests.

Provides an in-memory SQLite app, an in-memory identity provider, seeded
organization/store/users, and auth header helpers.
"""

import uuid

import pytest

from storecheer import create_app
from storecheer.extensions import db
from storecheer.models import Organization, Store
from storecheer.services import user_service
from storecheer.services.errors import AdapterFailure
from storecheer.services.identity_provider import (
    AuthIdentityRecord,
    AuthSession,
    IdentityProvider,
    InvalidCredentials,
    set_identity_provider,
)


DEFAULT_PASSWORD = "Password123!"


class FakeIdentityProvider(IdentityProvider):
    """In-memory provider; set fail_listing / fail_create to simulate outages."""

    name = "fake"

    def __init__(self):
        self.accounts = {}  # auth_id -> (email, password)
        self.tokens = {}    # token -> auth_id
        self.fail_listing = False
        self.fail_create = False
        self.list_calls = 0

    def add_account(self, email, password=DEFAULT_PASSWORD, auth_id=None) -> str:
        auth_id = auth_id or str(uuid.uuid4())
        self.accounts[auth_id] = (email, password)
        return auth_id

    def remove_account(self, auth_id) -> None:
        self.accounts.pop(auth_id, None)

    def issue_token(self, auth_id) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = auth_id
        return token

    def sign_in(self, email, password):
        for auth_id, (acct_email, acct_password) in self.accounts.items():
            if acct_email == email and acct_password == password:
                return AuthSession(
                    access_token=self.issue_token(auth_id),
                    identity=AuthIdentityRecord(id=auth_id, email=email),
                )
        raise InvalidCredentials("Invalid login credentials")

    def sign_up(self, email, password):
        auth_id = self.admin_create_user(email, password)
        return AuthIdentityRecord(id=auth_id, email=email)

    def get_current_user(self, access_token):
        auth_id = self.tokens.get(access_token)
        if auth_id is None or auth_id not in self.accounts:
            return None
        return AuthIdentityRecord(id=auth_id, email=self.accounts[auth_id][0])

    def sign_out(self, access_token):
        self.tokens.pop(access_token, None)

    def admin_create_user(self, email, password):
        if self.fail_create:
            raise AdapterFailure("Auth user creation failed: service unavailable")
        if any(acct_email == email for acct_email, _ in self.accounts.values()):
            raise AdapterFailure("Auth user creation failed: already registered")
        return self.add_account(email, password)

    def admin_list_users(self):
        self.list_calls += 1
        if self.fail_listing:
            raise AdapterFailure("Auth user listing failed: service unavailable")
        return [AuthIdentityRecord(id=auth_id, email=email) for auth_id, (email, _) in self.accounts.items()]


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'IDENTITY_PROVIDER': 'local',
        'DAILY_POINT_LIMIT': 50,
        'DEFAULT_TIMEZONE': 'UTC',
    })
    set_identity_provider(app, FakeIdentityProvider())

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    return db.session


@pytest.fixture(scope='function')
def provider(app):
    return app.extensions["identity_provider"]


@pytest.fixture(scope='function')
def org(db_session):
    org = Organization(name="Cheer Foods", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def store(db_session, org):
    store = Store(organization_id=org.id, name="Shibuya", code="SBY", timezone="UTC")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def other_store(db_session, org):
    store = Store(organization_id=org.id, name="Shinjuku", code="SJK", timezone="UTC")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def make_user(provider, store):
    """Factory: provider account plus linked user row."""
    def _make(email, role="staff", store_id=None, name=None, with_account=True):
        auth_id = provider.add_account(email) if with_account else None
        return user_service.create_user(
            email=email,
            name=name or email.split("@")[0].title(),
            role=role,
            primary_store_id=store_id or store.id,
            auth_id=auth_id,
        )
    return _make


@pytest.fixture(scope='function')
def alice(make_user):
    return make_user("alice@cheer.test")


@pytest.fixture(scope='function')
def bob(make_user):
    return make_user("bob@cheer.test")


@pytest.fixture(scope='function')
def manager(make_user):
    return make_user("manager@cheer.test", role="manager")


@pytest.fixture(scope='function')
def sysadmin(make_user):
    return make_user("admin@cheer.test", role="system_admin")


@pytest.fixture(scope='function')
def headers_for(provider):
    """Bearer headers for a fresh provider session of a user."""
    def _headers(user) -> dict:
        return {'Authorization': f'Bearer {provider.issue_token(user.auth_id)}'}
    return _headers
