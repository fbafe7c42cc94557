import asyncio
import logging
import re
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from datetime import timedelta

import httpx

from activity_api.api.schemas.activity import ActivityDay
from activity_api.api.schemas.activity import ProviderStatus
from activity_api.clients.github_client import fetch_github_counts
from activity_api.clients.gitlab_client import fetch_gitlab_counts
from activity_api.core.cache import ResponseCache
from activity_api.settings import Settings


logger = logging.getLogger(__name__)

DEFAULT_DAYS = 365
MIN_DAYS = 1
MAX_DAYS = 3650

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")

SourceCounts = dict[str, int]
ProviderFetcher = Callable[..., Awaitable[SourceCounts]]


def normalize_days(raw_days: str | None) -> int:
    """Parse the requested day count, defaulting to 365 and clamping to 1..3650."""

    if not raw_days:
        return DEFAULT_DAYS

    match = _LEADING_INT.match(raw_days)
    if match is None:
        return DEFAULT_DAYS

    return min(MAX_DAYS, max(MIN_DAYS, int(match.group(1))))


def build_date_range(days: int, now: datetime | None = None) -> list[str]:
    """Return `days` consecutive ISO dates ending at today's UTC date, oldest first."""

    current = now or datetime.now(UTC)
    if current.tzinfo is not None:
        current = current.astimezone(UTC)
    today = current.date()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def merge_counts(
    dates: list[str],
    github_counts: Mapping[str, int],
    gitlab_counts: Mapping[str, int],
) -> list[ActivityDay]:
    """Expand two sparse per-day mappings into a dense series over `dates`."""

    return [
        ActivityDay(
            date=day,
            github=github_counts.get(day, 0),
            gitlab=gitlab_counts.get(day, 0),
        )
        for day in dates
    ]


@dataclass(frozen=True)
class ProviderOutcome:
    """Result of one provider fetch: counts on success, the error otherwise."""

    counts: SourceCounts
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def provider_status(configured: bool, outcome: ProviderOutcome | None) -> ProviderStatus:
    if not configured:
        return "not_configured"
    if outcome is None or outcome.ok:
        return "ok"
    return "error"


@dataclass(frozen=True)
class ActivityResult:
    days: tuple[ActivityDay, ...]
    github_status: ProviderStatus
    gitlab_status: ProviderStatus


class ActivityService:
    """Aggregate GitHub and GitLab activity into a cached per-day series."""

    def __init__(
        self,
        settings: Settings,
        cache: ResponseCache[tuple[ActivityDay, ...]] | None = None,
        github_fetcher: ProviderFetcher = fetch_github_counts,
        gitlab_fetcher: ProviderFetcher = fetch_gitlab_counts,
        now: Callable[[], datetime] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        if cache is None:
            cache = ResponseCache(settings.activity_cache_ttl_seconds)
        self.cache = cache
        self._github_fetcher = github_fetcher
        self._gitlab_fetcher = gitlab_fetcher
        self._now = now or (lambda: datetime.now(UTC))
        self._transport = transport

    async def get_activity(self, raw_days: str | None) -> ActivityResult:
        days = normalize_days(raw_days)
        cache_key = f"days:{days}"

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Activity cache hit for %s", cache_key)
            return ActivityResult(
                days=cached,
                github_status=provider_status(self.settings.github_configured, None),
                gitlab_status=provider_status(self.settings.gitlab_configured, None),
            )

        dates = build_date_range(days, self._now())
        github_outcome, gitlab_outcome = await self._fetch_both(dates[0], dates[-1])

        merged = tuple(merge_counts(dates, github_outcome.counts, gitlab_outcome.counts))
        self.cache.set(cache_key, merged)
        logger.info(
            "Aggregated %d days of activity (github=%s, gitlab=%s)",
            days,
            "ok" if github_outcome.ok else "error",
            "ok" if gitlab_outcome.ok else "error",
        )

        return ActivityResult(
            days=merged,
            github_status=provider_status(self.settings.github_configured, github_outcome),
            gitlab_status=provider_status(self.settings.gitlab_configured, gitlab_outcome),
        )

    async def _fetch_both(
        self, from_date: str, to_date: str
    ) -> tuple[ProviderOutcome, ProviderOutcome]:
        settings = self.settings
        async with httpx.AsyncClient(
            timeout=settings.http_timeout_seconds, transport=self._transport
        ) as client:
            results = await asyncio.gather(
                self._github_fetcher(
                    client,
                    settings.github_token,
                    settings.github_username,
                    from_date,
                    to_date,
                    settings.github_graphql_url,
                ),
                self._gitlab_fetcher(
                    client,
                    settings.gitlab_token,
                    settings.gitlab_user_id,
                    from_date,
                    to_date,
                    settings.gitlab_api_base,
                ),
                return_exceptions=True,
            )

        github_outcome = self._settle("GitHub", results[0])
        gitlab_outcome = self._settle("GitLab", results[1])
        return github_outcome, gitlab_outcome

    @staticmethod
    def _settle(provider: str, result: SourceCounts | BaseException) -> ProviderOutcome:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.error(
                "%s activity fetch failed: %s",
                provider,
                result,
                exc_info=result,
            )
            return ProviderOutcome(counts={}, error=result)
        return ProviderOutcome(counts=result)
