"""Exception types shared by the gateway and the Pi API client."""

from typing import Any


class RelayError(Exception):
    """Base class for every error the relay raises on purpose."""


class RequestRejected(RelayError):
    """Inbound request is unusable; answered with a 400 and never forwarded."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def headers(self) -> dict[str, str]:
        return {}


class MissingFieldError(RequestRejected):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field


class InvalidFieldError(RequestRejected):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} must be a string or number")
        self.field = field


class RequestBodyTooLarge(RequestRejected):
    def __init__(self, limit: int) -> None:
        super().__init__("Request body too large")
        self.limit = limit

    @property
    def headers(self) -> dict[str, str]:
        # The rest of the body is left unread, so the connection cannot be reused.
        return {"Connection": "close"}


class InvalidJSONBody(RequestRejected):
    def __init__(self) -> None:
        super().__init__("Invalid JSON")


class ConfigurationError(RelayError):
    """Local misconfiguration; reported as 500, not as an upstream failure."""

    status_code = 500


class UpstreamError(RelayError):
    """Pi API answered outside 2xx or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class UpstreamTimeout(UpstreamError):
    """Pi API did not answer within the configured timeout."""
