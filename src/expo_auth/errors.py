"""Exceptions raised by the relay.

Every error carries the HTTP status the web layer answers with and a message
that is safe to show to the end user.
"""

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for all relay failures."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidRequestError(RelayError):
    """The caller sent missing or malformed parameters."""

    status_code = 400


class InvalidAudienceError(InvalidRequestError):
    """The requested audience matches no configured tenant."""

    def __init__(self, audience: Optional[str] = None):
        super().__init__(
            "Invalid audience",
            details="The requested audience is not supported.",
        )
        self.audience = audience


class ConfigurationError(RelayError):
    """The server is missing credentials it needs.

    The public message stays generic; ``reason`` names what is missing and
    is meant for server logs only.
    """

    status_code = 500

    def __init__(self, reason: str):
        super().__init__("Server configuration error")
        self.reason = reason


class InvalidStateError(RelayError):
    """The ``state`` parameter could not be decoded."""

    status_code = 500

    def __init__(self):
        super().__init__("Invalid state parameter")


class ProviderError(RelayError):
    """The identity provider reported an error.

    Either it redirected back with ``error``/``error_description`` or its
    token endpoint answered with a non-2xx status. The upstream status is
    passed through unchanged.
    """

    def __init__(
        self,
        error: str,
        description: Optional[str] = None,
        status_code: int = 400,
        message: Optional[str] = None,
    ):
        super().__init__(message or error, details=description)
        self.error = error
        self.description = description
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["status"] = self.status_code
        return body


class TokenExchangeError(RelayError):
    """The provider's token endpoint could not be reached."""

    status_code = 500
