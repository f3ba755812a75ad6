# Overview: Opaque session tokens with absolute and idle timeouts.

"""
Session tokens

Login hands the client a random 64-character hex token; the database keeps
only its SHA-256 digest. A session ends when it reaches
SESSION_ABSOLUTE_TIMEOUT_HOURS, when it sits unused for longer than
SESSION_IDLE_TIMEOUT_HOURS, on logout, or when its user is deactivated.
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow

TOKEN_BYTES = 32
USER_AGENT_MAX_LENGTH = 512


def _hours(key: str, default: int) -> timedelta:
    return timedelta(hours=current_app.config.get(key, default))


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    # Tokens carry 256 bits of entropy, so a fast digest is enough (no bcrypt)
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _active_session(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Start a session for user_id; returns (row, plaintext token for the client)."""
    if db.session.get(User, user_id) is None:
        raise ValueError("User not found")

    token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _hours("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24),
        user_agent=(user_agent or "")[:USER_AGENT_MAX_LENGTH] or None,
        ip_address=ip_address,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> User | None:
    """The token's active user, touching last_used_at; None once the session has ended."""
    session = _active_session(token)
    if session is None:
        return None

    now = utcnow()
    if now > session.expires_at:
        return None
    if now - session.last_used_at > _hours("SESSION_IDLE_TIMEOUT_HOURS", 12):
        _revoke(session, "Idle timeout")
        return None
    if session.user is None or not session.user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return session.user


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """False when there was no active session for the token."""
    session = _active_session(token)
    if session is None:
        return False
    _revoke(session, reason)
    return True
