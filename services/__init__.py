"""
Authentication services package.

- CredentialCodec: signed access credentials
- RevocationLedger: blacklist of revoked credential ids
- RefreshStore: opaque refresh tokens
- IdentityLinkingService: Google identity to local account
- AnomalyTracker: refresh token device/network mismatch detection
- AdmissionLimiter: per-address request rate limiting
- SessionService: facade used by the request handlers
- MaintenanceWorker: periodic cleanup
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .anomaly import AnomalyTracker
from .identity import GoogleIdentityVerifier, IdentityClaims, IdentityLinkingService, IdentityVerifier
from .limiter import AdmissionLimiter
from .maintenance import MaintenanceWorker
from .refresh_store import RefreshStore
from .revocation import RevocationLedger
from .session import SessionGrant, SessionService
from .tokens import CredentialCodec

__all__ = [
    "AuthServices",
    "create_services",
    "AnomalyTracker",
    "AdmissionLimiter",
    "CredentialCodec",
    "GoogleIdentityVerifier",
    "IdentityClaims",
    "IdentityLinkingService",
    "IdentityVerifier",
    "MaintenanceWorker",
    "RefreshStore",
    "RevocationLedger",
    "SessionGrant",
    "SessionService",
]


@dataclass
class AuthServices:
    session: SessionService
    limiter: AdmissionLimiter
    maintenance: MaintenanceWorker


def create_services(config: Mapping[str, Any], verifier: Optional[IdentityVerifier] = None) -> AuthServices:
    """Wire every service from a Flask-style config mapping."""
    codec = CredentialCodec(
        secret=config["JWT_SECRET"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
        ttl=config["ACCESS_TOKEN_EXPIRES"],
    )
    ledger = RevocationLedger()
    refresh_store = RefreshStore(retention=config["REFRESH_TOKEN_RETENTION"])
    identity = IdentityLinkingService(
        verifier or GoogleIdentityVerifier(config.get("GOOGLE_CLIENT_ID")),
        admin_email=config.get("ADMIN_EMAIL"),
    )
    session = SessionService(
        codec=codec,
        ledger=ledger,
        refresh_store=refresh_store,
        identity=identity,
        anomalies=AnomalyTracker(),
        admin_email=config.get("ADMIN_EMAIL"),
        rotate_refresh_tokens=config.get("REFRESH_TOKEN_ROTATION", False),
        reject_anomalies=config.get("REJECT_REFRESH_ANOMALIES", False),
    )
    limiter = AdmissionLimiter(
        limit=config.get("RATE_LIMIT_REQUESTS", 60),
        window=config.get("RATE_LIMIT_WINDOW_SECONDS", 60),
    )
    maintenance = MaintenanceWorker(
        limiter=limiter,
        ledger=ledger,
        refresh_store=refresh_store,
        interval=config.get("SWEEP_INTERVAL_SECONDS", 300),
    )
    return AuthServices(session=session, limiter=limiter, maintenance=maintenance)
