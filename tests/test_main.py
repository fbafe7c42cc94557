import json

import httpx
import pytest
from fastapi.testclient import TestClient

from activity_api.main import create_app
from activity_api.services.activity_service import ActivityService


@pytest.fixture
def github(fetcher):
    return fetcher({"2024-06-09": 2})


@pytest.fixture
def gitlab(fetcher):
    return fetcher({"2024-06-10": 4})


@pytest.fixture
def app_client(configured_settings, github, gitlab, fixed_now) -> TestClient:
    service = ActivityService(
        configured_settings,
        github_fetcher=github,
        gitlab_fetcher=gitlab,
        now=fixed_now,
    )
    app = create_app(settings=configured_settings, service=service)
    return TestClient(app)


def test_health_live_returns_ok(app_client: TestClient) -> None:
    response = app_client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_get_activity_returns_merged_series_with_headers(
    app_client: TestClient,
) -> None:
    response = app_client.get("/api/activity?days=3")

    assert response.status_code == 200
    assert response.json() == [
        {"date": "2024-06-08", "github": 0, "gitlab": 0},
        {"date": "2024-06-09", "github": 2, "gitlab": 0},
        {"date": "2024-06-10", "github": 0, "gitlab": 4},
    ]
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    assert response.headers["x-activity-github-status"] == "ok"
    assert response.headers["x-activity-gitlab-status"] == "ok"
    assert response.headers["cache-control"] == (
        "public, max-age=0, s-maxage=43200, stale-while-revalidate=43200"
    )
    assert response.headers["cdn-cache-control"] == (
        "public, max-age=43200, stale-while-revalidate=43200"
    )


def test_get_activity_defaults_to_365_days(app_client: TestClient) -> None:
    response = app_client.get("/api/activity")

    assert response.status_code == 200
    assert len(response.json()) == 365
    assert response.json()[-1]["date"] == "2024-06-10"


@pytest.mark.parametrize(
    ("query", "expected_length"),
    [("days=abc", 365), ("days=0", 1), ("days=-3", 1), ("days=9000", 3650)],
)
def test_get_activity_normalizes_days(
    app_client: TestClient, query: str, expected_length: int
) -> None:
    response = app_client.get(f"/api/activity?{query}")

    assert response.status_code == 200
    assert len(response.json()) == expected_length


def test_repeated_request_is_served_from_cache(
    app_client: TestClient, github, gitlab
) -> None:
    first = app_client.get("/api/activity?days=30")
    second = app_client.get("/api/activity?days=30")

    assert second.content == first.content
    assert len(github.calls) == 1
    assert len(gitlab.calls) == 1


@pytest.mark.parametrize(
    "method", ["POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "PROPFIND"]
)
def test_non_get_methods_are_rejected(
    app_client: TestClient, github, method: str
) -> None:
    response = app_client.request(method, "/api/activity")

    assert response.status_code == 405
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    assert response.headers["allow"] == "GET"
    assert response.json() == {"error": "Method not allowed"}
    assert github.calls == []


def test_head_is_rejected_with_activity_headers(
    app_client: TestClient, github
) -> None:
    response = app_client.head("/api/activity")

    assert response.status_code == 405
    assert response.headers["cache-control"].startswith("public")
    assert github.calls == []


def test_unknown_route_keeps_default_not_found(app_client: TestClient) -> None:
    response = app_client.get("/api/missing")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_unconfigured_providers_report_status_headers(make_settings) -> None:
    settings = make_settings()
    app = create_app(settings=settings)
    client = TestClient(app)

    response = client.get("/api/activity?days=2")

    assert response.status_code == 200
    assert all(day["github"] == 0 and day["gitlab"] == 0 for day in response.json())
    assert response.headers["x-activity-github-status"] == "not_configured"
    assert response.headers["x-activity-gitlab-status"] == "not_configured"


def test_provider_http_failures_report_error_status(
    configured_settings, fixed_now
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.github.com":
            return httpx.Response(502)
        return httpx.Response(
            200,
            json=[
                {
                    "created_at": "2024-06-10T08:00:00Z",
                    "action_name": "opened",
                    "target_type": "MergeRequest",
                }
            ],
        )

    service = ActivityService(
        configured_settings,
        transport=httpx.MockTransport(handler),
        now=fixed_now,
    )
    client = TestClient(create_app(settings=configured_settings, service=service))

    response = client.get("/api/activity?days=1")

    assert response.status_code == 200
    assert json.loads(response.content) == [
        {"date": "2024-06-10", "github": 0, "gitlab": 1}
    ]
    assert response.headers["x-activity-github-status"] == "error"
    assert response.headers["x-activity-gitlab-status"] == "ok"


def test_unhandled_error_returns_500_with_message(configured_settings) -> None:
    class BrokenService:
        async def get_activity(self, raw_days):
            raise RuntimeError("cache exploded")

    app = create_app(settings=configured_settings, service=BrokenService())
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/activity")

    assert response.status_code == 500
    assert response.json() == {"error": "cache exploded"}
