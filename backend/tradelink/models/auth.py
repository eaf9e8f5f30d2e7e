from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


TOKEN_ACCESS = "access"
TOKEN_REFRESH = "refresh"


class SessionToken(db.Model):
    """
    Bearer session token bound to one Business.

    Tokens are issued in pairs at login: a short-lived access token for API
    calls and a long-lived refresh token that can mint a new pair once.
    Only the SHA-256 hash is stored; plaintext is returned to the client once.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_business_active", "business_id", "is_revoked"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    business_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    token_type = db.Column(db.String(16), nullable=False, default=TOKEN_ACCESS)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    business = db.relationship("Business", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "token_type": self.token_type,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
