"""
Session orchestration for the request handlers.

Features:
- Registration and password login
- Google login through the identity linking service
- Access credential refresh from an opaque refresh token
- Logout (access credential revocation + refresh token invalidation)
- Access credential verification against the revocation ledger
- Forced revocation of every session of an account

Session lifecycle (not stored as such):
anonymous -> authenticated (access + refresh issued) -> refreshed (new
access, same refresh unless rotation is on) -> revoked -> expired.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError

from models import storage
from models.base_model import from_timestamp
from models.user import User
from services.accounts import find_by_email, normalize_email, role_for_email, touch_last_seen
from services.anomaly import AnomalyTracker
from services.errors import (
    ConflictError,
    InvalidCredentials,
    InvalidRefreshToken,
    NotFoundError,
    TokenNotFound,
    TokenRevoked,
)
from services.identity import IdentityLinkingService
from services.refresh_store import RefreshStore
from services.revocation import RevocationLedger
from services.tokens import CredentialCodec
from utils.security import hash_password, mask, verify_password

logger = logging.getLogger(__name__)


@dataclass
class SessionGrant:
    access_token: str
    account: User
    expires_in: int
    refresh_token: Optional[str] = None


class SessionService:
    """
    Facade used by the HTTP layer. All collaborators are injected so tests can
    swap the identity verifier or the codec clock.
    """

    def __init__(
        self,
        codec: CredentialCodec,
        ledger: RevocationLedger,
        refresh_store: RefreshStore,
        identity: IdentityLinkingService,
        anomalies: AnomalyTracker,
        admin_email: Optional[str] = None,
        rotate_refresh_tokens: bool = False,
        reject_anomalies: bool = False,
    ) -> None:
        self.codec = codec
        self.ledger = ledger
        self.refresh_store = refresh_store
        self.identity = identity
        self.anomalies = anomalies
        self.admin_email = admin_email
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self.reject_anomalies = reject_anomalies

    def _grant(self, user: User, device: Optional[str], ip: Optional[str]) -> SessionGrant:
        return SessionGrant(
            access_token=self.codec.issue(user),
            refresh_token=self.refresh_store.issue(user.id, device, ip),
            account=user,
            expires_in=self.codec.expires_in(),
        )

    def register(self, email: str, password: str, name: Optional[str] = None,
                 location: Optional[str] = None) -> User:
        """
        Create a password-based account.

        Raises:
            ConflictError: if the email is already registered
        """
        email = normalize_email(email)
        if find_by_email(email) is not None:
            raise ConflictError("Email already registered")

        user = User(
            name=name,
            email=email,
            location=location,
            password_hash=hash_password(password),
            role=role_for_email(email, self.admin_email),
            is_active=True,
            login_type="local",
        )
        storage.new(user)
        try:
            storage.save()
        except IntegrityError:
            raise ConflictError("Email already registered")
        logger.info("Registered account", extra={"user_id": user.id, "role": user.role})
        return user

    def login(self, email: str, password: str, device: Optional[str] = None,
              ip: Optional[str] = None) -> SessionGrant:
        """
        Password login. Unknown email, password-less account, inactive account
        and wrong password all fail the same way to avoid account enumeration.
        """
        user = find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed password login", extra={"ip_address": ip})
            raise InvalidCredentials()
        if not user.is_active:
            logger.info("Login refused for inactive account", extra={"user_id": user.id})
            raise InvalidCredentials()

        touch_last_seen(user, login_type="local")
        grant = self._grant(user, device, ip)
        logger.info("User authenticated", extra={"user_id": user.id, "role": user.role, "ip_address": ip})
        return grant

    def login_with_identity(self, id_token: str, device: Optional[str] = None,
                            ip: Optional[str] = None) -> SessionGrant:
        user = self.identity.resolve(id_token)
        grant = self._grant(user, device, ip)
        logger.info("User authenticated with Google", extra={"user_id": user.id, "ip_address": ip})
        return grant

    def refresh(self, token: str, device: Optional[str] = None,
                ip: Optional[str] = None) -> SessionGrant:
        """
        Exchange a refresh token for a new access credential.

        The refresh token stays valid (reusable until logout or retention
        expiry) unless rotation is enabled, in which case it is invalidated and
        a fresh one is returned in the grant.

        Raises:
            InvalidRefreshToken: unknown, invalidated or expired token, owner
                gone, or an anomaly under the rejecting policy
        """
        try:
            record = self.refresh_store.lookup(token)
        except TokenNotFound:
            raise InvalidRefreshToken(context={"token": mask(token)})

        user = storage.get(User, record.user_id)
        if user is None:
            self.refresh_store.invalidate(token)
            raise InvalidRefreshToken("User not found", context={"user_id": record.user_id})

        if self.anomalies.observe(record, device, ip) and self.reject_anomalies:
            self.refresh_store.invalidate(token)
            raise InvalidRefreshToken(context={"user_id": user.id, "reason": "anomaly"})

        new_refresh = None
        if self.rotate_refresh_tokens:
            self.refresh_store.invalidate(token)
            new_refresh = self.refresh_store.issue(user.id, device, ip)

        access_token = self.codec.issue(user)
        touch_last_seen(user)
        return SessionGrant(
            access_token=access_token,
            refresh_token=new_refresh,
            account=user,
            expires_in=self.codec.expires_in(),
        )

    def logout(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None,
               reason: str = "logout") -> None:
        """
        Revoke the access credential and invalidate the refresh token, each
        when present. Missing, malformed or already revoked tokens are ignored
        so repeated calls are safe.
        """
        claims = self.codec.decode_for_revocation(access_token) if access_token else None
        if claims is not None:
            self.ledger.revoke(
                claims["jti"],
                claims["sub"],
                reason,
                from_timestamp(claims["exp"]),
            )
        if refresh_token:
            self.refresh_store.invalidate(refresh_token)

    def verify_access(self, raw: str) -> Dict[str, Any]:
        """
        Raises:
            InvalidSignature, TokenExpired: from the codec
            TokenRevoked: the credential is in the revocation ledger
        """
        claims = self.codec.verify(raw)
        if self.ledger.is_revoked(claims["jti"]):
            raise TokenRevoked(context={"jti": claims["jti"]})
        return claims

    def current_user(self, raw: str) -> User:
        claims = self.verify_access(raw)
        user = storage.get(User, claims["sub"])
        if user is None:
            raise NotFoundError("User not found", context={"user_id": claims["sub"]})
        return user

    def revoke_sessions(self, user_id: str, reason: str = "security_concern") -> int:
        """Invalidate every refresh token of an account (forced revocation)."""
        if storage.get(User, user_id) is None:
            raise NotFoundError("User not found", context={"user_id": user_id})
        count = self.refresh_store.invalidate_all(user_id)
        logger.warning("Revoked all sessions", extra={"user_id": user_id, "reason": reason, "count": count})
        return count
