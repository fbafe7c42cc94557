from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    Provider credentials are optional; a provider without its full
    credential set is reported as not configured.
    """

    github_token: str | None = None
    github_username: str | None = None
    github_graphql_url: str = "https://api.github.com/graphql"
    gitlab_token: str | None = None
    gitlab_user_id: str | None = None
    gitlab_api_base: str = "https://gitlab.com/api/v4"
    activity_cache_ttl_seconds: int = 12 * 60 * 60
    http_timeout_seconds: float = 20.0
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3000

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def github_configured(self) -> bool:
        return bool(self.github_token and self.github_username)

    @property
    def gitlab_configured(self) -> bool:
        return bool(self.gitlab_token and self.gitlab_user_id)
