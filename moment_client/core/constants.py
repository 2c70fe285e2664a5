class ApiPath:
    """
    Registry of the backend paths the client talks to.

    Paths are relative to the configured API origin and keep the trailing
    slash the backend routes expect.

    Example:
        ```python
        from moment_client.core.constants import ApiPath

        response = await http.post(ApiPath.SEND_OTP, json=payload)
        ```
    """

    # Authentication endpoints (never decorated with a bearer token)
    AUTH_PREFIX = "/auth/"
    SEND_OTP = "api/v1/auth/send-otp/"
    VERIFY_OTP = "api/v1/auth/verify-otp/"
    REFRESH_TOKEN = "api/v1/auth/refresh-token/"
    LOGOUT = "api/v1/auth/logout/"

    # Authenticated user endpoints
    CURRENT_USER = "api/v1/user/me/"
    LOCATION_ELIGIBILITY = "api/v1/location/eligibility/"

    # Marker identifying the refresh endpoint inside a full URL path
    REFRESH_MARKER = "refresh-token"

    @classmethod
    def is_auth_path(cls, path: str) -> bool:
        """
        Check if a request path targets an authentication endpoint.

        Args:
            path: URL path of the outgoing request

        Returns:
            bool: True for send-OTP, verify-OTP, refresh and logout
        """
        return cls.AUTH_PREFIX in path

    @classmethod
    def is_refresh_path(cls, path: str) -> bool:
        return cls.REFRESH_MARKER in path


class Header:
    DEVICE_HASH = "x-device-hash"
    AUTHORIZATION = "Authorization"
    BEARER = "Bearer"


class Realtime:
    # Interval between heartbeat frames while the session is open
    HEARTBEAT_INTERVAL_SECONDS = 30.0

    # Close code the server uses when the access token is rejected
    CLOSE_CODE_UNAUTHORIZED = 4001
    CLOSE_CODE_NORMAL = 1000
    CLOSE_REASON_CLIENT = b"Client disconnecting"

    # Query parameters carrying the credentials in the connection URI
    TOKEN_PARAM = "token"
    DEVICE_HASH_PARAM = "device_hash"

    # Per-subscriber buffer of each broadcast channel
    SUBSCRIBER_BUFFER_SIZE = 64
