"""Error types raised across the application."""


class CraveCareError(Exception):
    """Base class for application errors."""


class MissingCredential(CraveCareError):
    """No API credential is configured for the AI provider."""


class NetworkFailure(CraveCareError):
    """A network call could not be completed."""


class RateLimited(CraveCareError):
    """The upstream service answered with HTTP 429."""


class UpstreamStatusError(CraveCareError):
    """The upstream service answered with a non-retryable status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        message = f"Upstream error {status_code}"
        super().__init__(f"{message}: {detail}" if detail else message)
        self.status_code = status_code
        self.detail = detail


class InvalidResponseSchema(CraveCareError):
    """A model response could not be parsed into the expected shape."""


class InsufficientTokens(CraveCareError):
    """Not enough tokens are available to redeem a cheat day."""

    def __init__(self, available: int, cost: int) -> None:
        super().__init__(f"Need {cost} tokens to unlock a cheat day, have {available}")
        self.available = available
        self.cost = cost


class DailyCapExceeded(CraveCareError):
    """The daily earn cap for a token reason has been reached."""


class InvalidSpendAmount(CraveCareError):
    """A spend amount was not a positive finite number."""


class NotAuthenticated(CraveCareError):
    """An operation needs an authenticated identity."""


class PersistenceConflict(CraveCareError):
    """The backing store rejected or failed a write."""


class InvalidTransition(CraveCareError):
    """A navigation transition is not allowed from the current state."""
