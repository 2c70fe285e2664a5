from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from moment_client.core.config import Settings, settings
from moment_client.core.device import DeviceIdentity
from moment_client.core.exceptions import (
    ClientError,
    DecodeError,
    HttpStatusError,
    TransportError,
)
from moment_client.core.logger import new_request_id, request_id_var
from moment_client.core.results import Failure, Result, Success
from moment_client.services.credentials import CredentialStore
from moment_client.services.http.auth import DeviceTokenAuth
from moment_client.services.http.refresh import TokenRefresher

ModelT = TypeVar("ModelT", bound=BaseModel)


def _extract_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None

    if isinstance(body, dict) and body.get("detail") is not None:
        return str(body["detail"])

    return None


class ApiClient:
    """
    Authenticated HTTP client for the Moment REST API.

    ``send`` returns raw responses and raises ``TransportError``; ``call``
    decodes the body into a schema and never raises for client failures,
    returning ``Success``/``Failure`` instead.
    """

    def __init__(self, http: httpx.AsyncClient, auth: DeviceTokenAuth):
        self._http = http
        self.auth = auth

    @classmethod
    def create(
        cls,
        device: DeviceIdentity,
        store: CredentialStore,
        refresher: TokenRefresher,
        config: Settings = settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ApiClient":
        auth = DeviceTokenAuth(device=device, store=store, refresher=refresher)
        http = httpx.AsyncClient(
            base_url=str(config.api_url),
            auth=auth,
            headers={"Accept": "application/json"},
            timeout=config.http_timeout_seconds,
            transport=transport,
        )
        return cls(http=http, auth=auth)

    async def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Send an authenticated request.

        Args:
            method: HTTP method
            path: Path relative to the API origin
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            httpx.Response: Final response, after at most one refresh and retry

        Raises:
            TransportError: If the request could not be completed at the network level
        """
        try:
            return await self._http.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            raise TransportError(f"{method} {path} failed: {e.__class__.__name__}", e)

    async def call(
        self,
        method: str,
        path: str,
        *,
        response_model: type[ModelT] | None = None,
        json: Any = None,
        params: dict[str, Any] | None = None,
        allow_empty: bool = False,
        operation: str | None = None,
    ) -> Result[ModelT | None]:
        """
        Send a request and decode the response into ``response_model``.

        Args:
            method: HTTP method
            path: Path relative to the API origin
            response_model: Schema for the body; None when the body is ignored
            json: Optional JSON body
            params: Optional query parameters
            allow_empty: Treat an empty 2xx body as ``Success(None)``
            operation: Name used in log lines and error messages

        Returns:
            Result: ``Success`` with the decoded body, or ``Failure`` holding a
            TransportError, HttpStatusError or DecodeError
        """
        operation = operation or f"{method} {path}"
        request_token = request_id_var.set(new_request_id())

        try:
            result = await self._call(
                method,
                path,
                response_model=response_model,
                json=json,
                params=params,
                allow_empty=allow_empty,
                operation=operation,
            )
        finally:
            request_id_var.reset(request_token)

        return result

    async def _call(
        self,
        method: str,
        path: str,
        *,
        response_model: type[ModelT] | None,
        json: Any,
        params: dict[str, Any] | None,
        allow_empty: bool,
        operation: str,
    ) -> Result[ModelT | None]:
        try:
            response = await self.send(method, path, json=json, params=params)
            value = self._decode(response, response_model, allow_empty, operation)
        except ClientError as e:
            logger.error(f"{operation} failed: {e.message}")
            return Failure(e)

        logger.debug(f"{operation} succeeded")
        return Success(value)

    @staticmethod
    def _decode(
        response: httpx.Response,
        response_model: type[ModelT] | None,
        allow_empty: bool,
        operation: str,
    ) -> ModelT | None:
        if not response.is_success:
            raise HttpStatusError(
                response.status_code,
                message=f"{operation} failed: {response.status_code} - {response.reason_phrase}",
                detail=_extract_detail(response),
            )

        if response_model is None:
            return None

        if not response.content.strip():
            if allow_empty:
                return None

            raise DecodeError()

        try:
            return response_model.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(f"{operation} returned an undecodable body", e)

    async def aclose(self) -> None:
        await self._http.aclose()
