"""Application error types."""

from cafe_finder.domain.location import LocationFailure


class CafeFinderError(Exception):
    """Base class for errors surfaced to API clients."""

    message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class AuthenticationRequired(CafeFinderError):
    """A write was attempted without a signed-in user."""

    message = "Please sign in to continue."


class CafeNotFoundError(CafeFinderError):
    """The requested cafe does not exist."""

    message = "Cafe not found."


class ProviderError(CafeFinderError):
    """An external provider reported an explicit error."""

    message = "The external service returned an error."


class RateLimitedError(ProviderError):
    """The AI provider rejected the call with a rate limit."""

    message = "AI rate limit exceeded. Please try again later."


class CreditsExhaustedError(ProviderError):
    """The AI provider has no remaining credits."""

    message = "AI credits exhausted. Please add credits to continue."


class PlacesProviderError(ProviderError):
    """The places provider returned a non-success status."""

    def __init__(self, status: str, message: str | None = None) -> None:
        super().__init__(message or _PLACES_STATUS_MESSAGES.get(status))
        self.status = status


class PlacesTransportError(CafeFinderError):
    """The places provider could not be reached."""

    message = "Failed to search nearby cafes."


class LocationError(CafeFinderError):
    """A location could not be resolved."""

    def __init__(self, failure: LocationFailure, detail: str | None = None) -> None:
        super().__init__(failure.message)
        self.failure = failure
        self.detail = detail


_PLACES_STATUS_MESSAGES = {
    "OVER_QUERY_LIMIT": "Places quota exceeded. Please try again later.",
    "REQUEST_DENIED": "Places request was denied. Check the API key.",
    "INVALID_REQUEST": "Places request was invalid.",
    "UNKNOWN_ERROR": "Places service error. Please try again.",
}
