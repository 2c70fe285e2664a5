import asyncio
import json
import time
from typing import Any, Awaitable, Callable

import anyio
import httpx
from aiohttp import WSMsgType, web
from anyio.streams.memory import MemoryObjectReceiveStream
from faker import Faker

from moment_client.core.constants import ApiPath
from moment_client.schemas import TokenPair
from moment_client.services.credentials import MemoryCredentialStore
from tests.schemas import OtpCredentials

RouteHandler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


def generate_otp_credentials() -> OtpCredentials:
    """
    Generate random OTP login credentials
    Returns:
        OtpCredentials: Generated email, phone and six digit OTP
    """
    faker = Faker()
    return OtpCredentials(
        email=faker.safe_email(),
        phone=faker.msisdn(),
        otp=faker.numerify("######"),
    )


def make_token_pair(access: str = "A1", refresh: str = "R1", expires_in: int = 3600) -> TokenPair:
    return TokenPair(
        access_token=access,
        refresh_token=refresh,
        refresh_token_expires_at=int(time.time()) + expires_in,
    )


def user_payload(user_id: int = 1) -> dict[str, Any]:
    return {
        "id": user_id,
        "email": "user@example.com",
        "phone": "+15550100",
        "is_active": True,
        "is_admin": False,
        "created_at": "2026-01-01T00:00:00Z",
        "profile": {"first_name": "Ada", "age": 30},
        "preferences": None,
    }


class SlowCredentialStore(MemoryCredentialStore):
    """Memory store whose reads suspend the caller for ``delay`` seconds."""

    def __init__(self, pair: TokenPair | None = None, delay: float = 0.05):
        super().__init__(pair)
        self.delay = delay

    async def load(self) -> TokenPair | None:
        await asyncio.sleep(self.delay)
        return await super().load()


class FakeBackend:
    """
    Programmable stand-in for the Moment REST API, served through httpx.MockTransport.

    Protected routes answer 401 unless the bearer token equals ``accepted_token``.
    The refresh endpoint answers with ``refresh_pair`` (and rotates
    ``accepted_token`` to it) or with ``refresh_status`` when that is not 200.
    """

    def __init__(self, accepted_token: str | None = "A1"):
        self.accepted_token = accepted_token
        self.requests: list[httpx.Request] = []
        self.authorizations: list[str | None] = []
        self.refresh_requests: list[httpx.Request] = []
        self.refresh_pair: TokenPair | None = None
        self.refresh_status = 200
        self.refresh_body: bytes | None = None
        self.refresh_delay = 0.0
        self.routes: dict[tuple[str, str], RouteHandler] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def refresh_calls(self) -> int:
        return len(self.refresh_requests)

    def route(self, method: str, path: str, handler: RouteHandler) -> None:
        self.routes[(method, "/" + path.lstrip("/"))] = handler

    def protected(self, method: str, path: str, status: int = 200, json_body: Any = None) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.headers.get("authorization") != f"Bearer {self.accepted_token}":
                return httpx.Response(401, json={"detail": "Could not validate credentials"})
            return httpx.Response(status, json=json_body)

        self.route(method, path, handler)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/" + path.lstrip("/")]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.authorizations.append(request.headers.get("authorization"))

        if request.url.path == "/" + ApiPath.REFRESH_TOKEN:
            return await self._refresh(request)

        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not Found"})

        response = route(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    async def _refresh(self, request: httpx.Request) -> httpx.Response:
        self.refresh_requests.append(request)

        if self.refresh_delay:
            await asyncio.sleep(self.refresh_delay)

        if self.refresh_status != 200:
            return httpx.Response(self.refresh_status, json={"detail": "Invalid refresh token"})

        if self.refresh_body is not None:
            return httpx.Response(200, content=self.refresh_body)

        assert self.refresh_pair is not None
        self.accepted_token = self.refresh_pair.access_token
        return httpx.Response(200, json=self.refresh_pair.model_dump())


class FakeRealtimeServer:
    """In-process aiohttp WebSocket endpoint recording what the client sends."""

    path = "/api/v1/location/ws"

    def __init__(self):
        self.connections = 0
        self.queries: list[dict[str, str]] = []
        self.received: list[dict[str, Any]] = []
        self.sockets: list[web.WebSocketResponse] = []
        self.reject_status: int | None = None
        self._connected = asyncio.Event()

        self.app = web.Application()
        self.app.router.add_get(self.path, self.handler)

    async def handler(self, request: web.Request) -> web.StreamResponse:
        self.connections += 1
        self.queries.append(dict(request.query))

        if self.reject_status is not None:
            return web.Response(status=self.reject_status)

        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.sockets.append(ws)
        self._connected.set()

        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                self.received.append(json.loads(msg.data))

        return ws

    async def wait_connected(self, timeout: float = 2.0) -> web.WebSocketResponse:
        with anyio.fail_after(timeout):
            await self._connected.wait()
        return self.sockets[-1]

    def frames_of_type(self, frame_type: str) -> list[dict[str, Any]]:
        return [frame for frame in self.received if frame.get("type") == frame_type]

    async def wait_for_frames(
        self, frame_type: str, count: int = 1, timeout: float = 2.0
    ) -> list[dict[str, Any]]:
        with anyio.fail_after(timeout):
            while len(self.frames_of_type(frame_type)) < count:
                await asyncio.sleep(0.01)

        return self.frames_of_type(frame_type)

    async def wait_connections(self, count: int, timeout: float = 2.0) -> None:
        with anyio.fail_after(timeout):
            while len(self.sockets) < count:
                await asyncio.sleep(0.01)

    async def wait_all_closed(self, timeout: float = 2.0) -> None:
        with anyio.fail_after(timeout):
            while not all(ws.closed for ws in self.sockets):
                await asyncio.sleep(0.01)


async def next_event(stream: MemoryObjectReceiveStream, timeout: float = 2.0) -> Any:
    with anyio.fail_after(timeout):
        return await stream.receive()


async def assert_no_event(stream: MemoryObjectReceiveStream, wait: float = 0.2) -> None:
    await asyncio.sleep(wait)
    try:
        event = stream.receive_nowait()
    except anyio.WouldBlock:
        return
    raise AssertionError(f"Unexpected event {event!r}")
