from loguru import logger

from moment_client.core.constants import ApiPath
from moment_client.core.results import Result, Success
from moment_client.schemas import (
    ConnectionEvent,
    EligibilityResponse,
    MatchFrame,
    SessionEndFrame,
)
from moment_client.services.http import ApiClient
from moment_client.services.realtime import Broadcaster, RealtimeSessionClient


class LocationService:
    """
    Location-based matching: eligibility checks over REST and the realtime
    matching session.
    """

    def __init__(self, api: ApiClient, realtime: RealtimeSessionClient):
        self.api = api
        self.realtime = realtime

    async def check_eligibility(self) -> Result[EligibilityResponse]:
        """
        Check which requirements are still missing before matching can start.

        Returns:
            Result holding the eligibility; an empty 2xx body means eligible.
        """
        result = await self.api.call(
            "GET",
            ApiPath.LOCATION_ELIGIBILITY,
            response_model=EligibilityResponse,
            allow_empty=True,
            operation="Check eligibility",
        )

        if isinstance(result, Success) and result.value is None:
            logger.debug("Empty eligibility response, user is eligible")
            return Success(EligibilityResponse())

        return result

    async def connect(self) -> None:
        await self.realtime.connect()

    async def disconnect(self) -> None:
        await self.realtime.disconnect()

    async def send_location_update(self, latitude: float, longitude: float) -> bool:
        return await self.realtime.send_location_update(latitude, longitude)

    @property
    def is_connected(self) -> bool:
        return self.realtime.is_connected

    @property
    def match_events(self) -> Broadcaster[MatchFrame]:
        return self.realtime.match_events

    @property
    def session_end_events(self) -> Broadcaster[SessionEndFrame]:
        return self.realtime.session_end_events

    @property
    def connection_events(self) -> Broadcaster[ConnectionEvent]:
        return self.realtime.connection_events

    async def cleanup(self) -> None:
        await self.realtime.cleanup()
