import uvicorn

from activity_api.settings import Settings


def main() -> None:
    """Run the local development server."""

    settings = Settings()
    uvicorn.run(
        "activity_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
