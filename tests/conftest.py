from collections.abc import Callable
from datetime import UTC
from datetime import datetime

import pytest

from activity_api.settings import Settings


FIXED_NOW = datetime(2024, 6, 10, 15, 30, tzinfo=UTC)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """Provider stand-in that records calls and returns or raises a fixed result."""

    def __init__(
        self, counts: dict[str, int] | None = None, error: Exception | None = None
    ) -> None:
        self.counts = counts or {}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, client, token, account, from_date, to_date, url):
        self.calls.append((from_date, to_date))
        if self.error is not None:
            raise self.error
        return dict(self.counts)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def factory(**overrides) -> Settings:
        values = {
            "github_token": None,
            "github_username": None,
            "gitlab_token": None,
            "gitlab_user_id": None,
            "sentry_dsn": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def configured_settings(make_settings) -> Settings:
    return make_settings(
        github_token="gh-token",
        github_username="octocat",
        gitlab_token="gl-token",
        gitlab_user_id="42",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: FIXED_NOW
