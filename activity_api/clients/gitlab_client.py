import logging
from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from activity_api.clients.errors import ProviderHTTPError
from activity_api.clients.errors import ProviderResponseError


logger = logging.getLogger(__name__)

PROVIDER = "gitlab"
DEFAULT_API_BASE = "https://gitlab.com/api/v4"
PAGE_SIZE = 100
MAX_GITLAB_PAGES = 10

ALLOWED_ACTIONS = frozenset({"pushed", "opened", "created"})
TARGET_TYPES = {
    "PushEvent": "push",
    "MergeRequestEvent": "merge_request",
    "MergeRequest": "merge_request",
    "IssueEvent": "issue",
    "Issue": "issue",
}


def parse_gitlab_datetime(raw_value: str) -> datetime:
    return datetime.fromisoformat(raw_value.replace("Z", "+00:00"))


def event_day(raw_created_at: str) -> str:
    """Return the UTC calendar date of an event timestamp."""

    created_at = parse_gitlab_datetime(raw_created_at)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return created_at.astimezone(UTC).date().isoformat()


def event_kind(event: Mapping[str, Any]) -> str | None:
    """Return the canonical type tag for a countable event, else None."""

    created_at = event.get("created_at")
    action_name = event.get("action_name")
    target_type = event.get("target_type")
    if not created_at or not action_name or not target_type:
        return None
    if not isinstance(action_name, str) or not isinstance(target_type, str):
        return None

    words = action_name.split()
    if not words or words[0] not in ALLOWED_ACTIONS:
        return None

    return TARGET_TYPES.get(target_type)


def event_weight(kind: str, event: Mapping[str, Any]) -> int:
    """Pushes weigh their commit count (at least 1); other events weigh 1."""

    if kind != "push":
        return 1

    push_data = event.get("push_data")
    commit_count = push_data.get("commit_count") if isinstance(push_data, Mapping) else None
    if not isinstance(commit_count, int) or isinstance(commit_count, bool):
        return 1
    return max(1, commit_count)


def count_events(events: list[Any], counts: dict[str, int]) -> None:
    for event in events:
        if not isinstance(event, Mapping):
            continue
        kind = event_kind(event)
        if kind is None:
            continue
        try:
            day = event_day(event["created_at"])
        except (TypeError, ValueError):
            logger.debug("Skipping GitLab event with bad timestamp: %r", event.get("created_at"))
            continue
        counts[day] = counts.get(day, 0) + event_weight(kind, event)


def _next_page(response: httpx.Response) -> int | None:
    raw_next = response.headers.get("x-next-page", "").strip()
    if not raw_next:
        return None
    try:
        page = int(raw_next)
    except ValueError:
        return None
    return page if page > 0 else None


async def fetch_gitlab_counts(
    client: httpx.AsyncClient,
    token: str | None,
    user_id: str | None,
    from_date: str,
    to_date: str,
    api_base: str | None = None,
) -> dict[str, int]:
    """Fetch per-day activity counts from a GitLab user's event stream.

    Pages are requested while GitLab signals a next page, up to
    MAX_GITLAB_PAGES. Returns an empty mapping without touching the network
    when the token or user id is missing.

    Raises:
        ProviderHTTPError: If any page answers with a non-success status.
        ProviderResponseError: If a page body is not a list of events.
    """

    if not token or not user_id:
        return {}

    base = (api_base or DEFAULT_API_BASE).rstrip("/")
    url = f"{base}/users/{quote(str(user_id), safe='')}/events"
    counts: dict[str, int] = {}

    page: int | None = 1
    pages_fetched = 0
    while page is not None:
        if pages_fetched >= MAX_GITLAB_PAGES:
            logger.info("GitLab pagination stopped after %d pages", MAX_GITLAB_PAGES)
            break

        response = await client.get(
            url,
            params={
                "after": from_date,
                "before": to_date,
                "per_page": str(PAGE_SIZE),
                "page": str(page),
            },
            headers={"PRIVATE-TOKEN": token},
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderHTTPError(PROVIDER, exc.response.status_code) from exc

        try:
            events: Any = response.json()
        except ValueError as exc:
            raise ProviderResponseError(PROVIDER, "response is not valid JSON") from exc
        if not isinstance(events, list):
            raise ProviderResponseError(PROVIDER, "events response is invalid")

        count_events(events, counts)
        pages_fetched += 1
        page = _next_page(response)

    return counts
