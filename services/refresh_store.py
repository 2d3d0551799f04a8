"""
Refresh token store backed by the refresh_tokens table.

Tokens are opaque random values bound to the account, device and network
address they were issued to. Invalidation flips a flag; rows are physically
removed only once their retention window has passed.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from models import storage
from models.base_model import utcnow
from models.refresh_token import RefreshToken
from services.errors import TokenNotFound
from utils.security import generate_refresh_token, mask

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(days=7)


class RefreshStore:

    def __init__(self, retention: timedelta = DEFAULT_RETENTION) -> None:
        self.retention = retention

    def issue(self, user_id: str, device: Optional[str], ip: Optional[str]) -> str:
        """Create and persist a new valid refresh token; returns its opaque value."""
        token = generate_refresh_token()
        created = utcnow()
        storage.new(
            RefreshToken(
                token=token,
                user_id=user_id,
                device=device or "unknown",
                ip=ip,
                is_valid=True,
                created_at=created,
                expires_at=created + self.retention,
            )
        )
        storage.save()
        logger.info("Issued refresh token", extra={"user_id": user_id, "token": mask(token)})
        return token

    def lookup(self, token: str) -> RefreshToken:
        """
        Fetch a usable refresh record.

        Raises:
            TokenNotFound: absent, invalidated, or past retention
        """
        if not token:
            raise TokenNotFound()
        session = storage.get_session()
        record = session.query(RefreshToken).filter(RefreshToken.token == token).first()
        if record is None or not record.is_valid or record.expires_at <= utcnow():
            raise TokenNotFound(context={"token": mask(token)})
        return record

    def invalidate(self, token: str) -> bool:
        """Flip the validity flag off. Returns False when nothing changed."""
        if not token:
            return False
        session = storage.get_session()
        record = session.query(RefreshToken).filter(RefreshToken.token == token).first()
        if record is None or not record.is_valid:
            return False
        record.is_valid = False
        storage.save()
        logger.info("Invalidated refresh token", extra={"user_id": record.user_id, "token": mask(token)})
        return True

    def invalidate_all(self, user_id: str) -> int:
        """Invalidate every still-valid refresh token of an account."""
        session = storage.get_session()
        changed = (
            session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.is_valid.is_(True))
            .update({RefreshToken.is_valid: False}, synchronize_session=False)
        )
        storage.save()
        logger.info("Invalidated refresh tokens", extra={"user_id": user_id, "count": changed})
        return changed

    def purge_expired(self) -> int:
        """Remove records past retention, valid or not."""
        session = storage.get_session()
        removed = (
            session.query(RefreshToken)
            .filter(RefreshToken.expires_at <= utcnow())
            .delete(synchronize_session=False)
        )
        storage.save()
        if removed:
            logger.debug("Purged expired refresh tokens", extra={"removed": removed})
        return removed
