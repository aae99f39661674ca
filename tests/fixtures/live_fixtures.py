"""Fixtures for the live session registry and RTC token tests."""

from datetime import datetime, timedelta, timezone

import pytest

from app.app_config import AppEnvironConfig
from app.domain.live.session.session_registry import SessionRegistry
from app.domain.rtc.token.token_domain import TokenService

TEST_APP_ID = "test-app-id"
TEST_APP_CERTIFICATE = "test-app-certificate"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(fake_clock: FakeClock) -> SessionRegistry:
    """Registry driven by the fake clock."""
    return SessionRegistry(clock=fake_clock)


@pytest.fixture
def rtc_config() -> AppEnvironConfig:
    return AppEnvironConfig(
        RTC_APP_ID=TEST_APP_ID,
        RTC_APP_CERTIFICATE=TEST_APP_CERTIFICATE,
        RTC_TOKEN_TTL_SECONDS=3600,
    )


@pytest.fixture
def token_service(rtc_config: AppEnvironConfig) -> TokenService:
    return TokenService(cfg=rtc_config)
