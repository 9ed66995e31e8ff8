# Overview: Access tokens issued by the local identity provider.

"""
Local Session Tokens

Only used when IDENTITY_PROVIDER=local; a hosted provider issues its own
tokens. The plaintext token goes to the client once, the table keeps its
SHA-256 hash.

Lifetime:
- SESSION_ABSOLUTE_TIMEOUT after sign-in the token is dead regardless of use
- SESSION_IDLE_TIMEOUT without a request revokes it
- sign-out revokes it immediately
"""

import hashlib
import secrets
from datetime import timedelta

from ..extensions import db
from ..models import AuthIdentity, SessionToken
from storecheer.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)
REVOKED_RETENTION = timedelta(days=30)


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens are high-entropy, so a fast hash is enough (unlike passwords)
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    if not token:
        return None
    return db.session.query(SessionToken).filter_by(token_hash=hash_token(token), is_revoked=False).first()


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def create_session(auth_identity_id: str) -> tuple[SessionToken, str]:
    """Issue a token for an identity. Returns (row, plaintext_token)."""
    identity = db.session.get(AuthIdentity, auth_identity_id)
    if not identity:
        raise ValueError("Identity not found")

    token = generate_token()
    issued_at = utcnow()
    session = SessionToken(
        auth_identity_id=identity.id,
        token_hash=hash_token(token),
        created_at=issued_at,
        last_used_at=issued_at,
        expires_at=issued_at + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> AuthIdentity | None:
    """
    Identity behind a live token, or None.

    A token idle for longer than SESSION_IDLE_TIMEOUT is revoked on the spot.
    Every successful lookup refreshes last_used_at.
    """
    session = _live_session(token)
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return session.auth_identity


def revoke_session(token: str, reason: str = "User sign-out") -> bool:
    """False when the token is unknown or already revoked."""
    session = _live_session(token)
    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def cleanup_expired_sessions() -> int:
    """Delete expired or revoked tokens issued more than REVOKED_RETENTION ago."""
    now = utcnow()
    deleted = (
        db.session.query(SessionToken)
        .filter(
            db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
            SessionToken.created_at < now - REVOKED_RETENTION,
        )
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
