# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

One session object per login, handed to every handler. The session records who logged in, with
which role, and when.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout (SESSION_ABSOLUTE_HOURS, default 24h)
- Idle timeout (SESSION_IDLE_MINUTES, default 2h)
- Revoked on logout (unconditionally) and on account deactivation

The session also owns the cart: revoking a session drops its cart lines.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..repositories import SessionRepository, CartRepository
from bakerist.time_utils import utcnow


DEFAULT_ABSOLUTE_HOURS = 24
DEFAULT_IDLE_MINUTES = 120


@dataclass
class SessionContext:
    """
    Authenticated request context returned by validate_session.

    `role` and `login_time` are the values captured when the session opened.
    Permission checks read the user's current role.
    """
    user: User
    session: SessionToken
    role: str
    login_time: datetime

    @property
    def session_id(self) -> int:
        return self.session.id

    @property
    def user_id(self) -> int:
        return self.user.id


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 of the token for database storage."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_HOURS", DEFAULT_ABSOLUTE_HOURS))


def _idle_timeout() -> timedelta:
    return timedelta(minutes=current_app.config.get("SESSION_IDLE_MINUTES", DEFAULT_IDLE_MINUTES))


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
    *,
    commit: bool = True,
) -> tuple[SessionToken, str]:
    """
    Open a session for a user.

    Returns (session_record, plaintext_token).
    """
    if not user.is_active:
        raise ValueError("User account is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        role=user.role,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)

    if commit:
        db.session.commit()
    else:
        db.session.flush()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str, now: datetime) -> None:
    session.is_revoked = True
    session.revoked_at = now
    session.revoked_reason = reason
    CartRepository().clear(session.id)


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a token to a SessionContext.

    Returns None if the token is unknown, revoked, expired, idle too long, or
    the user has been deactivated. Expired, idle and deactivated sessions
    are revoked on the way out, which drops their carts.

    Updates last_used_at on success.
    """
    if not token:
        return None

    sessions = SessionRepository()
    session = sessions.get_by_hash(hash_token(token))
    if session is None:
        return None

    now = utcnow()

    if session.expires_at < now:
        _revoke(session, "Expired", now)
        db.session.commit()
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout", now)
        db.session.commit()
        return None

    user = session.user
    if user is None or not user.is_active:
        _revoke(session, "User account deactivated", now)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        role=session.role,
        login_time=session.created_at,
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke a session and drop its cart.

    Returns True if an active session was revoked, False if none matched.
    """
    session = SessionRepository().get_by_hash(hash_token(token))
    if session is None:
        return False

    _revoke(session, reason, utcnow())
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions", *, commit: bool = True) -> int:
    """
    Revoke all active sessions for a user. Returns how many were revoked.
    """
    now = utcnow()
    sessions = SessionRepository().active_for_user(user_id)
    for session in sessions:
        _revoke(session, reason, now)

    if commit:
        db.session.commit()
    return len(sessions)
