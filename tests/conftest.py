import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("START_MAINTENANCE", "false")

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from services.errors import UpstreamIdentityError  # noqa: E402
from services.identity import IdentityClaims  # noqa: E402


class FakeGoogleVerifier:
    """Stands in for Google: maps opaque test tokens to claims."""

    def __init__(self):
        self.tokens = {}
        self.calls = 0

    def register(self, token, subject, email, name="Google User", picture=None, email_verified=True):
        self.tokens[token] = IdentityClaims(
            subject=subject,
            email=email,
            name=name,
            picture=picture,
            email_verified=email_verified,
        )

    def verify(self, id_token):
        self.calls += 1
        claims = self.tokens.get(id_token)
        if claims is None:
            raise UpstreamIdentityError(context={"reason": "unknown test token"})
        return claims


@pytest.fixture
def verifier():
    return FakeGoogleVerifier()


@pytest.fixture
def make_app(tmp_path, verifier):
    """Build an app over a fresh SQLite file; extra kwargs become config overrides."""
    def _make(**overrides):
        config = {"DATABASE_URL": f"sqlite:///{tmp_path / 'auth.db'}"}
        config.update(overrides)
        return create_app("test", overrides=config, verifier=verifier)

    yield _make
    storage.close()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["auth"]


@pytest.fixture
def session_service(services):
    return services.session


@pytest.fixture
def user(session_service):
    return session_service.register("alice@example.com", "secret1", name="Alice")
