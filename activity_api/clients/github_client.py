from collections.abc import Mapping
from typing import Any

import httpx

from activity_api.clients.errors import ProviderHTTPError
from activity_api.clients.errors import ProviderResponseError


PROVIDER = "github"

CONTRIBUTIONS_QUERY = """
query($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        weeks {
          contributionDays {
            date
            contributionCount
          }
        }
      }
    }
  }
}
"""


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, Mapping):
            message = first.get("message")
            if isinstance(message, str) and message:
                return message
    return "Unknown GitHub GraphQL error"


def _calendar_weeks(payload: Mapping[str, Any]) -> list[Any]:
    node: Any = payload.get("data")
    for key in ("user", "contributionsCollection", "contributionCalendar"):
        if not isinstance(node, Mapping):
            return []
        node = node.get(key)

    if not isinstance(node, Mapping):
        return []
    weeks = node.get("weeks")
    return weeks if isinstance(weeks, list) else []


async def fetch_github_counts(
    client: httpx.AsyncClient,
    token: str | None,
    username: str | None,
    from_date: str,
    to_date: str,
    graphql_url: str,
) -> dict[str, int]:
    """Fetch per-day contribution counts from the GitHub GraphQL calendar.

    Returns an empty mapping without touching the network when the token or
    username is missing.

    Raises:
        ProviderHTTPError: If GitHub answers with a non-success status.
        ProviderResponseError: If the payload reports errors or is malformed.
    """

    if not token or not username:
        return {}

    variables = {
        "username": username,
        "from": f"{from_date}T00:00:00Z",
        "to": f"{to_date}T23:59:59Z",
    }
    response = await client.post(
        graphql_url,
        json={"query": CONTRIBUTIONS_QUERY, "variables": variables},
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "User-Agent": "activity-api",
        },
    )
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ProviderHTTPError(PROVIDER, exc.response.status_code) from exc

    try:
        payload: Any = response.json()
    except ValueError as exc:
        raise ProviderResponseError(PROVIDER, "response is not valid JSON") from exc

    if not isinstance(payload, Mapping):
        raise ProviderResponseError(PROVIDER, "GraphQL response is invalid")

    if payload.get("errors"):
        raise ProviderResponseError(PROVIDER, _first_error_message(payload["errors"]))

    counts: dict[str, int] = {}
    for week in _calendar_weeks(payload):
        if not isinstance(week, Mapping):
            continue
        contribution_days = week.get("contributionDays")
        if not isinstance(contribution_days, list):
            continue
        for item in contribution_days:
            if not isinstance(item, Mapping):
                continue
            raw_date = item.get("date")
            raw_count = item.get("contributionCount")
            if isinstance(raw_date, str) and isinstance(raw_count, int):
                counts[raw_date] = max(0, raw_count)

    return counts
