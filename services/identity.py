"""
Third-party (Google) identity resolution.

Verification of the provider's ID token is delegated to an IdentityVerifier;
IdentityLinkingService maps the verified claims onto a local account, linking
or creating one as needed. The unique constraints on users.email and
users.google_id are the only serialization point between concurrent first
logins of the same identity: the losing writer rolls back and retries as a
lookup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import jwt
from sqlalchemy.exc import IntegrityError

from models import storage
from models.user import User
from services.accounts import (
    find_by_email,
    find_by_google_id,
    normalize_email,
    role_for_email,
    touch_last_seen,
)
from services.errors import ConflictError, UpstreamIdentityError

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")
MAX_RESOLVE_ATTEMPTS = 3


@dataclass
class IdentityClaims:
    subject: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    email_verified: bool = True


class IdentityVerifier(Protocol):
    def verify(self, id_token: str) -> IdentityClaims: ...


class GoogleIdentityVerifier:
    """Verifies Google ID tokens against Google's published signing keys."""

    def __init__(self, client_id: Optional[str], certs_url: str = GOOGLE_CERTS_URL,
                 jwks_client: Optional[jwt.PyJWKClient] = None) -> None:
        self.client_id = client_id
        self._jwks = jwks_client or jwt.PyJWKClient(certs_url)

    def verify(self, id_token: str) -> IdentityClaims:
        if not self.client_id:
            raise UpstreamIdentityError("Google login is not configured")
        try:
            signing_key = self._jwks.get_signing_key_from_jwt(id_token)
            payload = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.client_id,
                options={"require": ["sub", "email", "exp", "iss"]},
            )
        except (jwt.PyJWKClientError, jwt.InvalidTokenError) as exc:
            raise UpstreamIdentityError(context={"reason": str(exc)})

        if payload.get("iss") not in GOOGLE_ISSUERS:
            raise UpstreamIdentityError(context={"reason": "unexpected issuer"})

        verified = payload.get("email_verified", False)
        if isinstance(verified, str):
            verified = verified.lower() == "true"
        return IdentityClaims(
            subject=payload["sub"],
            email=payload["email"],
            name=payload.get("name"),
            picture=payload.get("picture"),
            email_verified=bool(verified),
        )


class IdentityLinkingService:

    def __init__(self, verifier: IdentityVerifier, admin_email: Optional[str] = None) -> None:
        self.verifier = verifier
        self.admin_email = admin_email

    def resolve(self, id_token: str) -> User:
        """
        Verify a Google ID token and return the matching local account.

        Raises:
            UpstreamIdentityError: the token could not be verified
            ConflictError: the email belongs to an account linked to another
                Google identity
        """
        claims = self.verifier.verify(id_token)
        if not claims.subject or not claims.email:
            raise UpstreamIdentityError("Google account has no usable identity")

        for attempt in range(1, MAX_RESOLVE_ATTEMPTS + 1):
            try:
                user = self._resolve_claims(claims)
            except IntegrityError:
                logger.info(
                    "Identity resolved concurrently, retrying as lookup",
                    extra={"google_id": claims.subject, "attempt": attempt},
                )
                continue
            touch_last_seen(user, login_type="google")
            return user

        raise ConflictError("Could not resolve Google identity", context={"google_id": claims.subject})

    def _resolve_claims(self, claims: IdentityClaims) -> User:
        user = find_by_google_id(claims.subject)
        if user is not None:
            if claims.picture and user.google_profile_pic != claims.picture:
                user.google_profile_pic = claims.picture
            return user

        email = normalize_email(claims.email)
        user = find_by_email(email)
        if user is not None:
            if user.google_id == claims.subject:
                # linked by a concurrent login of the same identity
                return user
            if user.google_id:
                raise ConflictError(
                    "Email is already linked to another Google account",
                    context={"user_id": user.id},
                )
            if not claims.email_verified:
                raise UpstreamIdentityError("Google email address is not verified")
            user.google_id = claims.subject
            if claims.picture:
                user.google_profile_pic = claims.picture
            user.is_active = True
            storage.save()
            logger.info("Linked Google identity to account", extra={"user_id": user.id})
            return user

        user = User(
            name=claims.name,
            email=email,
            google_id=claims.subject,
            google_profile_pic=claims.picture,
            is_active=True,
            role=role_for_email(email, self.admin_email),
            login_type="google",
        )
        storage.new(user)
        storage.save()
        logger.info("Created account from Google identity", extra={"user_id": user.id})
        return user
