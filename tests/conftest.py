"""
Shared test fixtures and utilities.
"""
import os
import pytest
import jwt
from datetime import datetime, timedelta, timezone

os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('AWS_SECURITY_TOKEN', 'testing')
os.environ.setdefault('AWS_SESSION_TOKEN', 'testing')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')


def make_token(user_id: str, role: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign a JWT the way the identity provider would."""
    from src.core import config
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "exp": now + expires_in,
        "iat": now
    }
    return jwt.encode(payload, config.settings.jwt_secret, algorithm=config.settings.jwt_algorithm)


@pytest.fixture
def token_factory():
    """Expose make_token to tests."""
    return make_token


@pytest.fixture
def auth_headers_for():
    """Build authorization headers for a given user id and role."""
    def _headers(user_id: str = "admin-1", role: str = "SUPER_ADMIN") -> dict:
        return {"Authorization": f"Bearer {make_token(user_id, role)}"}
    return _headers


@pytest.fixture
def auth_headers(auth_headers_for):
    """Authorization headers for a super admin."""
    return auth_headers_for()


class FakeClock:
    """Manually advanced clock for TTL and ETA tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()
