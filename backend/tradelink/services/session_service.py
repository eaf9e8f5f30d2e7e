# Overview: Service-layer operations for session tokens; issue, validate, rotate, revoke.

"""
Session Token Service

WHY: Every API call is made on behalf of one Business. The bearer token is
an opaque random string; the session row it hashes to carries the business
id, so the tenant is never taken from client input.

TOKENS:
- Issued in pairs at login/signup: access (ACCESS_TOKEN_TTL_MINUTES) and
  refresh (REFRESH_TOKEN_TTL_DAYS).
- Only access tokens authenticate API calls.
- A refresh token is single-use: refreshing revokes it and issues a new
  pair.
- Stored as SHA-256 hashes; plaintext leaves the server exactly once.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..errors import AuthenticationError
from ..extensions import db
from ..models import Business, SessionToken
from ..models.auth import TOKEN_ACCESS, TOKEN_REFRESH
from tradelink.time_utils import utcnow, to_utc_z


@dataclass
class SessionContext:
    """Resolved bearer identity for one request."""
    business: Business
    session: SessionToken
    business_id: str


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "Bearer",
            "access_expires_at": to_utc_z(self.access_expires_at),
            "refresh_expires_at": to_utc_z(self.refresh_expires_at),
        }


def generate_token() -> str:
    """64 hex chars from the OS CSPRNG; never uuid4 or random."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens are high-entropy; a fast hash is sufficient
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _issue(business_id: str, token_type: str, ttl: timedelta, user_agent, ip_address) -> tuple[SessionToken, str]:
    plaintext = generate_token()
    now = utcnow()
    session = SessionToken(
        business_id=business_id,
        token_type=token_type,
        token_hash=hash_token(plaintext),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    return session, plaintext


def create_token_pair(business_id: str, user_agent: str | None = None, ip_address: str | None = None) -> TokenPair:
    """Issue and persist a fresh access + refresh pair for business_id."""
    config = current_app.config
    access, access_token = _issue(
        business_id, TOKEN_ACCESS,
        timedelta(minutes=config["ACCESS_TOKEN_TTL_MINUTES"]),
        user_agent, ip_address,
    )
    refresh, refresh_token = _issue(
        business_id, TOKEN_REFRESH,
        timedelta(days=config["REFRESH_TOKEN_TTL_DAYS"]),
        user_agent, ip_address,
    )
    db.session.commit()
    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        access_expires_at=access.expires_at,
        refresh_expires_at=refresh.expires_at,
    )


def _find_live(token: str, token_type: str) -> SessionToken | None:
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        token_type=token_type,
        is_revoked=False,
    ).first()
    if session is None or session.expires_at < utcnow():
        return None
    return session


def validate_access_token(token: str) -> SessionContext | None:
    """
    Resolve an access token to its Business.

    Returns None for unknown, expired, revoked or refresh tokens.
    Updates last_used_at on success.
    """
    session = _find_live(token, TOKEN_ACCESS)
    if session is None:
        return None

    business = session.business
    if business is None:
        return None

    session.last_used_at = utcnow()
    db.session.commit()
    return SessionContext(business=business, session=session, business_id=business.id)


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def refresh_tokens(refresh_token: str, user_agent: str | None = None, ip_address: str | None = None) -> TokenPair:
    """Rotate: revoke the presented refresh token and issue a new pair."""
    session = _find_live(refresh_token, TOKEN_REFRESH)
    if session is None:
        raise AuthenticationError("Invalid or expired refresh token")

    _revoke(session, "Refresh token rotated")
    db.session.flush()
    return create_token_pair(session.business_id, user_agent=user_agent, ip_address=ip_address)


def revoke_session(token: str, reason: str = "Business logout") -> bool:
    """Revoke one token of either type. False if it was not live."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if session is None:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_business_sessions(business_id: str, reason: str = "Revoke all sessions") -> int:
    sessions = db.session.query(SessionToken).filter_by(
        business_id=business_id,
        is_revoked=False,
    ).all()
    for session in sessions:
        _revoke(session, reason)
    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """
    Delete expired or revoked sessions created more than older_than_days ago.

    Run periodically (flask maintenance cleanup-sessions).
    """
    now = utcnow()
    cutoff = now - timedelta(days=older_than_days)
    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
