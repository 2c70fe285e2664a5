from typing import Literal, Union

from moment_client.schemas.base import BaseSchema, ResponseSchema


class LocationFrame(BaseSchema):
    """Outbound realtime frame: a location update or a heartbeat"""

    type: Literal["location", "heartbeat"]
    latitude: float | None = None
    longitude: float | None = None

    @classmethod
    def location(cls, latitude: float, longitude: float) -> "LocationFrame":
        return cls(type="location", latitude=latitude, longitude=longitude)

    @classmethod
    def heartbeat(cls) -> "LocationFrame":
        return cls(type="heartbeat")

    def to_wire(self) -> str:
        return self.model_dump_json(exclude_none=True)


class MatchedUser(ResponseSchema):
    id: int
    first_name: str | None = None
    age: int | None = None
    bio: str | None = None
    profile_picture_url: str | None = None


class MatchFrame(ResponseSchema):
    """Inbound frame announcing a proximity match"""

    type: Literal["match"]
    user: MatchedUser | None = None


class SessionEndFrame(ResponseSchema):
    """Inbound frame ending the matching session"""

    type: Literal["session_end"]
    reason: str | None = None


InboundFrame = Union[MatchFrame, SessionEndFrame]


class EligibilityResponse(ResponseSchema):
    """Requirements still missing before the user may start matching"""

    missing: list[str] | None = None

    @property
    def is_eligible(self) -> bool:
        return not self.missing
