from sqlalchemy import Column, String, DateTime
from models.base_model import BaseModel, Base, utcnow

REVOCATION_REASONS = ("logout", "password_change", "security_concern", "other")


class BlacklistedToken(BaseModel, Base):
    __tablename__ = "blacklisted_tokens"

    jti = Column(String(64), nullable=False, unique=True, index=True)
    # no foreign key: entries must outlive a deleted account until expires_at
    user_id = Column(String(36), nullable=False, index=True)
    reason = Column(String(32), nullable=False, default="logout")
    revoked_at = Column(DateTime, default=utcnow, nullable=False)
    # same as the access credential's exp; rows are useless after it
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<BlacklistedToken token={self.jti}>"
