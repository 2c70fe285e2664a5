from .broadcast import Broadcaster
from .frames import decode_inbound_frame
from .session import RealtimeSessionClient, SessionState

__all__ = [
    "Broadcaster",
    "RealtimeSessionClient",
    "SessionState",
    "decode_inbound_frame",
]
