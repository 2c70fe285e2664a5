from moment_client.core.constants import ApiPath
from moment_client.core.results import Result
from moment_client.schemas import UserRead
from moment_client.services.http import ApiClient


class UserService:
    """Read access to the authenticated user's account."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def get_current_user(self) -> Result[UserRead]:
        return await self.api.call(
            "GET",
            ApiPath.CURRENT_USER,
            response_model=UserRead,
            operation="Get current user",
        )
