"""
Access credential codec.

Issues and verifies signed JWT access credentials. The codec only knows the
signing secret; revocation is checked by the session service against the
revocation ledger.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt

from services.errors import InvalidSignature, TokenExpired
from utils.security import generate_jti

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ["sub", "jti", "iat", "exp"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialCodec:
    """Creates and verifies signed access credentials."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=1),
        issuer: str = "session-auth-api",
        clock: Callable[[], datetime] = _now,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self.issuer = issuer
        self.clock = clock

    def issue(self, account) -> str:
        """
        Build an access credential for an account.

        Args:
            account: object exposing id, email and role

        Returns:
            str: the encoded JWT
        """
        now = self.clock()
        payload = {
            "iss": self.issuer,
            "sub": str(account.id),
            "email": account.email,
            "role": account.role,
            "jti": generate_jti(),
            "iat": now.timestamp(),
            "exp": (now + self.ttl).timestamp(),
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def _decode(self, raw: str, verify_exp: bool) -> Dict[str, Any]:
        return jwt.decode(
            raw,
            self.secret,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            options={"require": REQUIRED_CLAIMS, "verify_exp": verify_exp},
        )

    def verify(self, raw: str) -> Dict[str, Any]:
        """
        Decode and validate an access credential.

        Raises:
            TokenExpired: when the credential is past its expiry
            InvalidSignature: on a bad signature, malformed token or wrong type
        """
        if not raw:
            raise InvalidSignature("Access token is required")
        try:
            claims = self._decode(raw, verify_exp=True)
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError as exc:
            raise InvalidSignature(context={"reason": str(exc)})

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidSignature("Wrong token type")
        return claims

    def decode_for_revocation(self, raw: str) -> Optional[Dict[str, Any]]:
        """
        Signature-checked decode that tolerates expiry, for logout.

        Returns None for anything that was not issued by this codec, so a caller
        can never plant arbitrary identifiers in the revocation ledger.
        """
        if not raw:
            return None
        try:
            claims = self._decode(raw, verify_exp=False)
        except jwt.InvalidTokenError as exc:
            logger.info("Ignoring unverifiable token on revocation", extra={"reason": str(exc)})
            return None
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            return None
        return claims

    def expires_in(self) -> int:
        return int(self.ttl.total_seconds())
