class ProviderError(Exception):
    """Raised when an activity provider cannot deliver counts."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderHTTPError(ProviderError):
    """Raised when a provider answers with a non-success status code."""

    def __init__(self, provider: str, status_code: int) -> None:
        super().__init__(provider, f"request failed: {status_code}")
        self.status_code = status_code


class ProviderResponseError(ProviderError):
    """Raised when a provider reports an error or returns a malformed body."""
