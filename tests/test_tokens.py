"""Unit tests for the access credential codec (no database needed)."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest

from services.errors import InvalidSignature, TokenExpired
from services.tokens import CredentialCodec

SECRET = "unit-test-secret"


@pytest.fixture
def account():
    return SimpleNamespace(id="user-1", email="alice@example.com", role="user")


@pytest.fixture
def codec():
    return CredentialCodec(SECRET)


def _past(hours=2):
    return lambda: datetime.now(timezone.utc) - timedelta(hours=hours)


class TestIssueAndVerify:

    def test_round_trip_claims(self, codec, account):
        claims = codec.verify(codec.issue(account))

        assert claims["sub"] == "user-1"
        assert claims["email"] == "alice@example.com"
        assert claims["role"] == "user"
        assert claims["type"] == "access"
        assert claims["exp"] - claims["iat"] == pytest.approx(3600)
        assert claims["jti"]

    def test_each_credential_gets_a_fresh_jti(self, codec, account):
        first = codec.verify(codec.issue(account))
        second = codec.verify(codec.issue(account))
        assert first["jti"] != second["jti"]

    def test_later_credential_in_same_second_expires_later(self, account):
        instants = iter([
            datetime(2030, 1, 1, 12, 0, 0, 100000, tzinfo=timezone.utc),
            datetime(2030, 1, 1, 12, 0, 0, 900000, tzinfo=timezone.utc),
        ])
        codec = CredentialCodec(SECRET, clock=lambda: next(instants))
        first = jwt.decode(codec.issue(account), options={"verify_signature": False})
        second = jwt.decode(codec.issue(account), options={"verify_signature": False})
        assert second["exp"] > first["exp"]

    def test_custom_ttl(self, account):
        codec = CredentialCodec(SECRET, ttl=timedelta(minutes=5))
        claims = codec.verify(codec.issue(account))
        assert claims["exp"] - claims["iat"] == pytest.approx(300)
        assert codec.expires_in() == 300

    def test_secret_is_required(self):
        with pytest.raises(ValueError):
            CredentialCodec("")


class TestVerifyFailures:

    def test_expired(self, account):
        old = CredentialCodec(SECRET, clock=_past())
        token = old.issue(account)
        with pytest.raises(TokenExpired):
            CredentialCodec(SECRET).verify(token)

    def test_wrong_secret(self, codec, account):
        token = CredentialCodec("another-secret").issue(account)
        with pytest.raises(InvalidSignature):
            codec.verify(token)

    def test_garbage(self, codec):
        with pytest.raises(InvalidSignature):
            codec.verify("not-a-jwt")

    def test_missing(self, codec):
        with pytest.raises(InvalidSignature):
            codec.verify("")

    def test_wrong_type(self, codec):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"iss": "session-auth-api", "sub": "u", "jti": "j", "iat": now, "exp": now + 60, "type": "refresh"},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidSignature):
            codec.verify(token)

    def test_missing_jti(self, codec):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"iss": "session-auth-api", "sub": "u", "iat": now, "exp": now + 60, "type": "access"},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidSignature):
            codec.verify(token)


class TestDecodeForRevocation:

    def test_expired_credential_is_still_decoded(self, account):
        token = CredentialCodec(SECRET, clock=_past()).issue(account)
        claims = CredentialCodec(SECRET).decode_for_revocation(token)
        assert claims["sub"] == "user-1"

    def test_forged_credential_is_ignored(self, codec, account):
        forged = CredentialCodec("attacker").issue(account)
        assert codec.decode_for_revocation(forged) is None

    def test_malformed_is_ignored(self, codec):
        assert codec.decode_for_revocation("abc.def") is None
        assert codec.decode_for_revocation(None) is None
