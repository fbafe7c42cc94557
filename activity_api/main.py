import logging

from fastapi import FastAPI
from fastapi import Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from activity_api.api.routes.activity import ActivityJSONResponse
from activity_api.api.routes.activity import http_exception_handler
from activity_api.api.routes.activity import router
from activity_api.core.cache import ResponseCache
from activity_api.core.middleware import ActivityRateLimitMiddleware
from activity_api.core.observability import configure_logging
from activity_api.core.observability import init_sentry
from activity_api.services.activity_service import ActivityService
from activity_api.settings import Settings


logger = logging.getLogger(__name__)


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> ActivityJSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) or "Internal server error"
    return ActivityJSONResponse(status_code=500, content={"error": message})


def create_app(
    settings: Settings | None = None, service: ActivityService | None = None
) -> FastAPI:
    """Build the FastAPI application with its activity service attached."""

    app_settings = settings or Settings()
    configure_logging(app_settings.log_level)
    init_sentry(app_settings)

    app = FastAPI(title="Developer Activity API")
    app.add_middleware(
        ActivityRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(router)

    app.state.settings = app_settings
    app.state.activity_service = service or ActivityService(
        settings=app_settings,
        cache=ResponseCache(app_settings.activity_cache_ttl_seconds),
    )
    return app


app = create_app()
