from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from moment_client.core.exceptions import (
    AuthExpiredError,
    ClientError,
    HttpStatusError,
    TransportError,
)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    error: ClientError

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_auth_error(self) -> bool:
        """True when the caller must re-authenticate (unresolved 401 or no usable refresh)."""
        if isinstance(self.error, AuthExpiredError):
            return True

        return isinstance(self.error, HttpStatusError) and self.error.status_code == 401

    @property
    def is_network_error(self) -> bool:
        return isinstance(self.error, TransportError)


Result = Union[Success[T], Failure]
