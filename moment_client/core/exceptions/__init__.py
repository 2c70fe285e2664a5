from .base import CustomException
from .client import (
    AuthExpiredError,
    ClientError,
    DecodeError,
    HttpStatusError,
    ProtocolError,
    TransportError,
)

__all__ = [
    "CustomException",
    "ClientError",
    "TransportError",
    "HttpStatusError",
    "DecodeError",
    "AuthExpiredError",
    "ProtocolError",
]
