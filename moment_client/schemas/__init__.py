from .base import BaseSchema, ResponseSchema
from .token import TokenPair, RefreshTokenRequest, LogoutRequest
from .auth import SendOtpRequest, SendOtpResponse, VerifyOtpRequest
from .user import UserRead, UserProfile, UserPreferences
from .location import (
    LocationFrame,
    MatchedUser,
    MatchFrame,
    SessionEndFrame,
    InboundFrame,
    EligibilityResponse,
)
from .events import Connected, Disconnected, Errored, Unauthorized, ConnectionEvent

__all__ = [
    "BaseSchema",
    "ResponseSchema",
    "TokenPair",
    "RefreshTokenRequest",
    "LogoutRequest",
    "SendOtpRequest",
    "SendOtpResponse",
    "VerifyOtpRequest",
    "UserRead",
    "UserProfile",
    "UserPreferences",
    "LocationFrame",
    "MatchedUser",
    "MatchFrame",
    "SessionEndFrame",
    "InboundFrame",
    "EligibilityResponse",
    "Connected",
    "Disconnected",
    "Errored",
    "Unauthorized",
    "ConnectionEvent",
]
