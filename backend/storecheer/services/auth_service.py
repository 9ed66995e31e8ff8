# Overview: Credential storage for the local identity provider; bcrypt hashing and password policy.

"""
Local Credentials

Backs IDENTITY_PROVIDER=local. An AuthIdentity row is what a hosted provider
would keep on its side: a random UUID, an email and a bcrypt hash. Profiles
live in the users table and point here through User.auth_id.

Password policy: at least 8 characters with an uppercase letter, a lowercase
letter, a digit and a symbol.
"""

import re
import uuid

import bcrypt

from ..extensions import db
from ..models import AuthIdentity
from storecheer.time_utils import utcnow


BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 8

PASSWORD_RULES = (
    (r"[A-Z]", "an uppercase letter"),
    (r"[a-z]", "a lowercase letter"),
    (r"\d", "a digit"),
    (r"[^A-Za-z0-9]", "a symbol"),
)


class PasswordValidationError(ValueError):
    pass


class CredentialError(ValueError):
    """Email missing or already taken."""
    pass


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    missing = [label for pattern, label in PASSWORD_RULES if not re.search(pattern, password)]
    if missing:
        raise PasswordValidationError(f"Password must contain {', '.join(missing)}")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    digest = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    # checkpw raises on a malformed stored hash; treat as a mismatch
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_identity(email: str, password: str) -> AuthIdentity:
    """
    Register credentials and return the new identity.

    Raises:
        CredentialError: email missing or already registered
        PasswordValidationError: password rejected by the policy
    """
    email = normalize_email(email)
    if not email:
        raise CredentialError("email is required")

    if db.session.query(AuthIdentity.id).filter_by(email=email).first():
        raise CredentialError("A user with this email address has already been registered")

    identity = AuthIdentity(id=str(uuid.uuid4()), email=email, password_hash=hash_password(password))
    db.session.add(identity)
    db.session.commit()
    return identity


def authenticate(email: str, password: str) -> AuthIdentity | None:
    """Matching identity (with last_sign_in_at stamped) or None."""
    identity = db.session.query(AuthIdentity).filter_by(email=normalize_email(email)).first()
    if identity is None or not verify_password(password, identity.password_hash):
        return None

    identity.last_sign_in_at = utcnow()
    db.session.commit()
    return identity


def list_identities() -> list[AuthIdentity]:
    return db.session.query(AuthIdentity).order_by(AuthIdentity.created_at).all()
