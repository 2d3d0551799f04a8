"""
Revocation ledger backed by the blacklisted_tokens table.

Each entry lives exactly as long as the credential it revokes; once the
credential would have expired anyway the row is dead weight and is purged.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from models import storage
from models.base_model import utcnow
from models.blacklisted_token import BlacklistedToken, REVOCATION_REASONS
from services.errors import ValidationError

logger = logging.getLogger(__name__)


class RevocationLedger:

    def revoke(self, jti: str, user_id: str, reason: str, expires_at: datetime) -> bool:
        """
        Blacklist a credential identifier until expires_at.

        Returns:
            bool: True when newly revoked, False when it was already revoked
            (or had already expired, which amounts to the same thing).
        """
        if reason not in REVOCATION_REASONS:
            raise ValidationError("Unknown revocation reason", context={"reason": reason})
        if expires_at <= utcnow():
            logger.info("Skipping revocation of already expired credential", extra={"jti": jti})
            return False

        session = storage.get_session()
        if session.query(BlacklistedToken.id).filter(BlacklistedToken.jti == jti).first():
            return False

        storage.new(BlacklistedToken(jti=jti, user_id=user_id, reason=reason, expires_at=expires_at))
        try:
            storage.save()
        except IntegrityError:
            # jti is unique, so another request revoked it first
            logger.info("Credential was revoked concurrently", extra={"jti": jti, "user_id": user_id})
            return False
        logger.info("Revoked credential", extra={"jti": jti, "user_id": user_id, "reason": reason})
        return True

    def is_revoked(self, jti: str) -> bool:
        if not jti:
            return False
        session = storage.get_session()
        return session.query(BlacklistedToken.id).filter(BlacklistedToken.jti == jti).first() is not None

    def purge_expired(self) -> int:
        """Delete entries whose credential expired; returns the number removed."""
        session = storage.get_session()
        removed = (
            session.query(BlacklistedToken)
            .filter(BlacklistedToken.expires_at <= utcnow())
            .delete(synchronize_session=False)
        )
        storage.save()
        if removed:
            logger.debug("Purged expired revocation entries", extra={"removed": removed})
        return removed
