from typing import Any

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from fastapi import Request
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from activity_api.api.schemas.activity import ActivityDay
from activity_api.api.schemas.activity import ErrorResponse
from activity_api.services.activity_service import ActivityService


router = APIRouter()

ACTIVITY_PATH = "/api/activity"

CACHE_MAX_AGE_SECONDS = 12 * 60 * 60
CACHE_HEADERS = {
    "Cache-Control": (
        f"public, max-age=0, s-maxage={CACHE_MAX_AGE_SECONDS}, "
        f"stale-while-revalidate={CACHE_MAX_AGE_SECONDS}"
    ),
    "CDN-Cache-Control": (
        f"public, max-age={CACHE_MAX_AGE_SECONDS}, "
        f"stale-while-revalidate={CACHE_MAX_AGE_SECONDS}"
    ),
}


class ActivityJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def json_response(
    content: Any, status_code: int = 200, headers: dict[str, str] | None = None
) -> ActivityJSONResponse:
    """Build a JSON response carrying the shared edge-cache directives."""

    return ActivityJSONResponse(
        content=content,
        status_code=status_code,
        headers={**CACHE_HEADERS, **(headers or {})},
    )


def get_activity_service(request: Request) -> ActivityService:
    return request.app.state.activity_service


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get(
    ACTIVITY_PATH,
    response_model=list[ActivityDay],
    response_class=ActivityJSONResponse,
    responses={405: {"model": ErrorResponse}},
)
async def get_activity(
    days: str | None = Query(default=None),
    service: ActivityService = Depends(get_activity_service),
) -> ActivityJSONResponse:
    """Return the merged per-day GitHub and GitLab activity series."""

    result = await service.get_activity(days)
    return json_response(
        [day.model_dump(mode="json") for day in result.days],
        headers={
            "X-Activity-GitHub-Status": result.github_status,
            "X-Activity-GitLab-Status": result.gitlab_status,
        },
    )



async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """Answer wrong methods on the activity endpoint with its JSON error shape."""

    if exc.status_code == 405 and request.url.path == ACTIVITY_PATH:
        return json_response(
            {"error": "Method not allowed"},
            status_code=405,
            headers={"Allow": "GET"},
        )
    return await default_http_exception_handler(request, exc)
