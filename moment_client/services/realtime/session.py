import asyncio
from enum import StrEnum
from typing import Any, Coroutine, assert_never

import aiohttp
from loguru import logger
from yarl import URL

from moment_client.core.config import Settings, settings
from moment_client.core.constants import Realtime
from moment_client.core.device import DeviceIdentity
from moment_client.core.exceptions import ProtocolError
from moment_client.schemas import (
    Connected,
    ConnectionEvent,
    Disconnected,
    Errored,
    LocationFrame,
    MatchFrame,
    SessionEndFrame,
    Unauthorized,
)
from moment_client.services.credentials import CredentialStore
from moment_client.services.realtime.broadcast import Broadcaster
from moment_client.services.realtime.frames import decode_inbound_frame


class SessionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    UNAUTHORIZED = "unauthorized"
    ERRORED = "errored"


ACTIVE_STATES = {SessionState.CONNECTING, SessionState.OPEN}


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return

    exception = task.exception()
    if exception is not None:
        logger.opt(exception=exception).error(f"Realtime task {task.get_name()} failed")


class RealtimeSessionClient:
    """
    WebSocket client for real-time location sharing and proximity matching.

    One session task owns the socket: it performs the handshake, reads frames
    and publishes them to ``match_events`` and ``session_end_events``. A
    heartbeat task sends ``{"type": "heartbeat"}`` while the session is open.
    Lifecycle transitions are published to ``connection_events``; every
    session ends with exactly one terminal event (Disconnected, Errored or
    Unauthorized).

    The access token travels in the connection URI and is not refreshed on
    this path; an expired token surfaces as ``Unauthorized``.
    """

    def __init__(
        self,
        store: CredentialStore,
        device: DeviceIdentity,
        realtime_url: URL,
        *,
        heartbeat_interval: float = Realtime.HEARTBEAT_INTERVAL_SECONDS,
        connect_timeout: float = 30.0,
        close_timeout: float = 5.0,
    ):
        self.store = store
        self.device = device
        self.realtime_url = realtime_url
        self.heartbeat_interval = heartbeat_interval
        self.connect_timeout = connect_timeout
        self.close_timeout = close_timeout

        self.match_events: Broadcaster[MatchFrame] = Broadcaster("match")
        self.session_end_events: Broadcaster[SessionEndFrame] = Broadcaster("session_end")
        self.connection_events: Broadcaster[ConnectionEvent] = Broadcaster("connection")

        self._state = SessionState.IDLE
        self._http: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._session_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._terminal_emitted = True
        self._cleaned_up = False
        # Serializes connect, disconnect and cleanup
        self._lifecycle_lock = asyncio.Lock()

    @classmethod
    def create(
        cls, store: CredentialStore, device: DeviceIdentity, config: Settings = settings
    ) -> "RealtimeSessionClient":
        return cls(
            store=store,
            device=device,
            realtime_url=config.realtime_url,
            heartbeat_interval=config.heartbeat_interval_seconds,
            connect_timeout=config.http_timeout_seconds,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == SessionState.OPEN

    def build_url(self, access_token: str) -> URL:
        return self.realtime_url.update_query(
            {Realtime.TOKEN_PARAM: access_token, Realtime.DEVICE_HASH_PARAM: self.device.hash}
        )

    # ============================================
    # PUBLIC OPERATIONS
    # ============================================

    async def connect(self) -> None:
        """
        Open the realtime session.

        Returns once the session task is started; the outcome is reported on
        ``connection_events``. Does nothing while a session is connecting or
        open, and emits ``Errored("Not authenticated")`` without any network
        attempt when no access token is stored.
        Waits for an in-flight ``disconnect`` to finish first.
        """
        async with self._lifecycle_lock:
            await self._connect()

    async def _connect(self) -> None:
        if self._cleaned_up:
            logger.warning("Realtime client was cleaned up, connect ignored")
            return

        if self._state in ACTIVE_STATES:
            logger.warning("Already connected or connecting")
            return

        access_token = await self.store.get_access_token()

        # cleanup() may have started while the store was read
        if self._cleaned_up:
            logger.warning("Realtime client was cleaned up, connect ignored")
            return

        if not access_token:
            logger.error("No access token available")
            self._state = SessionState.ERRORED
            self.connection_events.publish(Errored("Not authenticated"))
            return

        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=self.connect_timeout)
            )

        self._state = SessionState.CONNECTING
        self._terminal_emitted = False
        self._session_task = self._spawn(
            self._run_session(self.build_url(access_token)), "moment-realtime-session"
        )

    async def disconnect(self) -> None:
        """
        Stop the heartbeat, close the socket with 1000 and reset to IDLE.

        The state is reset even if the close handshake does not complete.
        Safe to call when no session is live.
        """
        async with self._lifecycle_lock:
            await self._disconnect()

    async def _disconnect(self) -> None:
        session_task = self._session_task
        if session_task is None or session_task.done():
            self._session_task = None
            self._state = SessionState.IDLE
            return

        logger.info("Disconnecting WebSocket")
        self._state = SessionState.CLOSING
        heartbeat_task = self._stop_heartbeat()

        ws = self._ws
        if ws is not None and not ws.closed:
            try:
                async with asyncio.timeout(self.close_timeout):
                    await ws.close(
                        code=Realtime.CLOSE_CODE_NORMAL, message=Realtime.CLOSE_REASON_CLIENT
                    )
            except (TimeoutError, aiohttp.ClientError, ConnectionError) as e:
                logger.warning(f"WebSocket close did not complete: {e!r}")

        if not session_task.done():
            session_task.cancel()

        await self._wait_for(session_task, heartbeat_task)

        self._finish(SessionState.CLOSED, Disconnected())
        self._session_task = None
        self._state = SessionState.IDLE

    async def cleanup(self) -> None:
        """
        Disconnect and release every background resource.

        Subscriptions end and no further events are emitted; later calls to
        ``connect`` are ignored.
        """
        self._cleaned_up = True
        await self.disconnect()

        self.match_events.close()
        self.session_end_events.close()
        self.connection_events.close()

        if self._http is not None:
            await self._http.close()
            self._http = None

        logger.info("Realtime client cleaned up")

    async def send_location_update(self, latitude: float, longitude: float) -> bool:
        """
        Send a location frame on the open session.

        Never raises: when the session is not open or the write fails the
        update is logged and dropped.

        Returns:
            bool: True if the frame was written to the socket
        """
        frame = LocationFrame.location(latitude=latitude, longitude=longitude)
        sent = await self._send(frame)

        if sent:
            logger.debug(f"Sent location update: {frame.to_wire()}")
        else:
            logger.warning("Failed to send location update")

        return sent

    # ============================================
    # SESSION TASK
    # ============================================

    async def _run_session(self, url: URL) -> None:
        logger.info(f"Connecting to {url.with_query(None)}")

        try:
            ws = await self._http.ws_connect(url)  # type: ignore[union-attr]
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"WebSocket error: {e!r}")
            self._finish(SessionState.ERRORED, Errored(str(e) or e.__class__.__name__))
            return

        try:
            self._ws = ws
            self._state = SessionState.OPEN
            logger.info("WebSocket connected")
            self.connection_events.publish(Connected())
            self._start_heartbeat()

            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    break
                else:
                    logger.debug(f"Ignoring {msg.type.name} frame")
        except asyncio.CancelledError:
            # Cancelled before disconnect() could see the socket
            if not ws.closed:
                await ws.close(
                    code=Realtime.CLOSE_CODE_NORMAL, message=Realtime.CLOSE_REASON_CLIENT
                )
            raise

        self._on_closed(ws)

    def _on_closed(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        exception = ws.exception()
        logger.info(f"WebSocket closed: {ws.close_code}")

        if self._state == SessionState.CLOSING:
            self._finish(SessionState.CLOSED, Disconnected())
        elif exception is not None:
            logger.error(f"WebSocket error: {exception!r}")
            self._finish(
                SessionState.ERRORED, Errored(str(exception) or exception.__class__.__name__)
            )
        elif ws.close_code == Realtime.CLOSE_CODE_UNAUTHORIZED:
            self._finish(SessionState.UNAUTHORIZED, Unauthorized())
        else:
            self._finish(SessionState.CLOSED, Disconnected())

    def _finish(self, state: SessionState, event: ConnectionEvent) -> None:
        """Stop the heartbeat, then emit the session's single terminal event."""
        self._stop_heartbeat()
        self._ws = None

        if self._terminal_emitted:
            return

        self._terminal_emitted = True
        self._state = state
        self.connection_events.publish(event)

    def _dispatch(self, text: str) -> None:
        logger.debug(f"Received message: {text}")

        try:
            frame = decode_inbound_frame(text)
        except ProtocolError as e:
            logger.warning(f"Dropping realtime frame: {e}")
            return

        match frame:
            case MatchFrame():
                self.match_events.publish(frame)
            case SessionEndFrame():
                self.session_end_events.publish(frame)
            case _:
                assert_never(frame)

    # ============================================
    # HEARTBEAT
    # ============================================

    def _start_heartbeat(self) -> None:
        self._heartbeat_task = self._spawn(self._heartbeat_loop(), "moment-realtime-heartbeat")

    def _stop_heartbeat(self) -> asyncio.Task | None:
        task = self._heartbeat_task
        self._heartbeat_task = None

        if task is not None and not task.done():
            task.cancel()

        return task

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)

            if await self._send(LocationFrame.heartbeat()):
                logger.debug("Sent heartbeat")
            else:
                logger.warning("Failed to send heartbeat")

    async def _send(self, frame: LocationFrame) -> bool:
        ws = self._ws
        if self._state != SessionState.OPEN or ws is None or ws.closed:
            return False

        try:
            await ws.send_str(frame.to_wire())
        except (ConnectionError, aiohttp.ClientError, RuntimeError) as e:
            logger.warning(f"WebSocket send failed: {e!r}")
            return False

        return True

    @staticmethod
    def _spawn(coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(_log_task_failure)
        return task

    @staticmethod
    async def _wait_for(*tasks: asyncio.Task | None) -> None:
        pending = [task for task in tasks if task is not None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
