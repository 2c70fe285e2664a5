from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class Connected:
    """The realtime handshake completed."""


@dataclass(frozen=True, slots=True)
class Disconnected:
    """The session closed with an ordinary close code."""


@dataclass(frozen=True, slots=True)
class Errored:
    """The session failed at the transport level."""

    message: str


@dataclass(frozen=True, slots=True)
class Unauthorized:
    """The server rejected the access token (close code 4001)."""


ConnectionEvent = Union[Connected, Disconnected, Errored, Unauthorized]
