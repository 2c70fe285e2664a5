from .auth import DeviceTokenAuth
from .client import ApiClient
from .refresh import TokenRefresher, create_bare_http_client

__all__ = [
    "ApiClient",
    "DeviceTokenAuth",
    "TokenRefresher",
    "create_bare_http_client",
]
