from .auth_service import AuthService
from .location_service import LocationService
from .user_service import UserService

__all__ = [
    "AuthService",
    "LocationService",
    "UserService",
]
