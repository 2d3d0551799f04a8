"""
RefreshToken model: opaque refresh tokens bound to the device and network
address that first received them.
Fields:
- token (unique, opaque random hex)
- user_id (String(36)) - FK to users.id
- device, ip - where the token was issued
- is_valid (bool) - flipped off on logout, rotation or forced revocation
- created_at, expires_at - expires_at is the retention deadline; rows past it
  are removed by the maintenance sweep whatever their flag
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_valid", "user_id", "is_valid"),
    )

    token = Column(String(128), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    device = Column(String(512), nullable=False, default="unknown")
    ip = Column(String(64), nullable=True)
    is_valid = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} valid={self.is_valid}>"
