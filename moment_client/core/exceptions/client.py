from moment_client.core.exceptions.base import CustomException

# =============================================================================
# Client Exceptions (raised by the transport, returned as Failure by services)
# =============================================================================


class ClientError(CustomException):
    """Base for every failure the client reports to its callers."""

    def __init__(self, message: str = "Client error", exception: Exception | None = None):
        super().__init__(message, exception)


class TransportError(ClientError):
    """DNS, connect, read or timeout failure before an HTTP status was received."""

    def __init__(
        self, message: str = "Network transport failed", exception: Exception | None = None
    ):
        super().__init__(message, exception)


class HttpStatusError(ClientError):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        detail: str | None = None,
        exception: Exception | None = None,
    ):
        super().__init__(message or f"Request failed with status {status_code}", exception)
        self.status_code = status_code
        self.detail = detail


class DecodeError(ClientError):
    """The response body was empty or malformed where one is required."""

    def __init__(self, message: str = "Empty response body", exception: Exception | None = None):
        super().__init__(message, exception)


class AuthExpiredError(ClientError):
    """No usable refresh token, or the refresh exchange failed."""

    def __init__(
        self, message: str = "No refresh token available", exception: Exception | None = None
    ):
        super().__init__(message, exception)


class ProtocolError(ClientError):
    """An inbound realtime frame was malformed or carried an unknown type."""

    def __init__(
        self, message: str = "Malformed realtime frame", exception: Exception | None = None
    ):
        super().__init__(message, exception)
