"""
RefreshToken model: opaque session-continuation credentials.
Fields:
- token (unique random string)
- user_id (String(36)) - FK to users.id, cascade on user delete
- expires_at, revoked
- device_info, ip_address (free text, optional)
A token is usable iff it is not revoked and not past expires_at.
Rows are revoked, never deleted, except through the user cascade.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel, as_utc, utcnow


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)
    device_info = Column(String(512), nullable=True)
    ip_address = Column(String(64), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_revoked", "user_id", "revoked"),
    )

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) > as_utc(self.expires_at)

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} revoked={self.revoked}>"
