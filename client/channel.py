"""
Persistent channel to the UNO Classic server.

This module handles:
    - Resolving which origin to connect to (the same client runs embedded
      in an iframe, behind a proxy, and directly in local dev)
    - A best-effort warm-up probe so the first connect does not race a
      cold server start
    - Wrapping the Socket.IO AsyncClient in a Channel handle with
      multi-subscriber event fan-out

Transport-level transitions (connect, connect_error, disconnect) are passed
through to subscribers unmodified. Reconnection is left to the Socket.IO
client's own retry policy.
"""

import asyncio
import inspect
import logging
import re
import time
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlsplit

import aiohttp

try:
    import socketio
except ImportError:  # surfaced as ClientUnavailableError by ChannelManager.connect
    socketio = None

from config import config
from constants import (
    BIND_ALL_HOSTS,
    MSG_CLIENT_UNAVAILABLE,
    MSG_CONNECT_FAILED,
    SERVER_EVENTS,
    SOCKET_TRANSPORTS,
    TRANSPORT_EVENTS,
)
from errors import ChannelConnectError, ClientUnavailableError

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]

CONNECT_ERRORS: tuple = (OSError, asyncio.TimeoutError)
if socketio is not None:
    CONNECT_ERRORS += (socketio.exceptions.ConnectionError,)


# =============================================================================
# Origin resolution
# =============================================================================

def _normalize(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    trimmed = value.strip()
    if not trimmed or trimmed == "null":
        return ""
    return trimmed.rstrip("/")


def normalize_origin(candidate: Any) -> str:
    """
    Reduce a candidate to a `scheme://host[:port]` origin.

    Paths, queries and fragments are dropped. Bind-all hosts are rewritten
    to localhost.

    Returns:
        The origin, or "" if the candidate is empty, not http(s), or
        unparseable.
    """
    value = _normalize(candidate)
    if not value.startswith(("http://", "https://")):
        return ""

    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return ""

    host = parts.hostname
    if not host:
        return ""
    if host in BIND_ALL_HOSTS:
        host = "localhost"
    elif ":" in host:
        host = f"[{host}]"

    netloc = f"{host}:{port}" if port is not None else host
    return f"{parts.scheme}://{netloc}"


def resolve_origin(
    override: Optional[str] = None,
    parent_origin: Optional[str] = None,
    referrer: Optional[str] = None,
    page_origin: Optional[str] = None,
    default: Optional[str] = None,
) -> str:
    """
    Pick the origin to open the channel against.

    Candidates in priority order: explicit server-provided override, the
    embedding parent frame's origin, the referrer's origin, the page's own
    origin. The first candidate that normalizes to a well-formed origin wins.

    Args:
        override: Origin computed server-side (see origin_hint_from_request).
        parent_origin: Parent frame origin, when embedded and reachable.
        referrer: Full referrer URL.
        page_origin: The client's own origin.
        default: Returned when no candidate qualifies (config.DEFAULT_ORIGIN).

    Returns:
        The resolved origin.
    """
    for candidate in (override, parent_origin, referrer, page_origin):
        origin = normalize_origin(candidate)
        if origin:
            return origin

    fallback = default if default is not None else config.DEFAULT_ORIGIN
    return normalize_origin(fallback) or _normalize(fallback)


def origin_hint_from_request(
    url: str,
    headers: Mapping[str, str],
    override: str = "",
) -> str:
    """
    Compute the socket origin a server embeds into the client it serves.

    Honors a configured override first, then proxy headers
    (x-forwarded-proto, x-forwarded-host / host), then the request URL.

    Args:
        url: Full request URL.
        headers: Request headers (any case).
        override: Configured origin override (config.SOCKET_ORIGIN).

    Returns:
        Origin string; 0.0.0.0 is rewritten to localhost.
    """
    if override and override.strip():
        return override.strip()

    parts = urlsplit(url)
    lowered = {k.lower(): v for k, v in headers.items()}

    forwarded_proto = lowered.get("x-forwarded-proto")
    proto = forwarded_proto.split(",")[0].strip() if forwarded_proto else parts.scheme

    host_header = lowered.get("x-forwarded-host") or lowered.get("host")
    if host_header:
        host = host_header.split(",")[0].strip()
        host = re.sub(r"^0\.0\.0\.0(?=:|$)", "localhost", host)
        return f"{proto}://{host}"

    return f"{parts.scheme}://{parts.netloc}".replace("://0.0.0.0", "://localhost")


# =============================================================================
# Warm-up probe
# =============================================================================

async def warm_up(
    origin: str,
    path: Optional[str] = None,
    timeout: Optional[float] = None,
) -> None:
    """
    Fire one GET at the channel endpoint to trigger lazy server init.

    The outcome is ignored; every failure is logged at DEBUG.
    """
    path = path or config.SOCKET_PATH
    timeout = timeout if timeout is not None else config.WARMUP_TIMEOUT_SECONDS
    params = {"warmup": str(int(time.time() * 1000))}

    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(f"{origin}{path.rstrip('/')}/", params=params) as response:
                logger.debug(f"Warm-up probe answered {response.status}")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.debug(f"Warm-up probe failed (ignored): {e!r}")


# =============================================================================
# Channel handle
# =============================================================================

class Channel:
    """
    A connected Socket.IO channel.

    Every known event is relayed from the underlying client to all
    subscribers, in registration order, in the order events arrive.
    """

    def __init__(self, client: Any, handlers: dict[str, list[Handler]]):
        self._client = client
        self._handlers = handlers
        self._detached = False
        for event in TRANSPORT_EVENTS + SERVER_EVENTS:
            self._relay(event)

    def _relay(self, event: str) -> None:
        async def relay(*args):
            if self._detached:
                return
            await dispatch_event(self._handlers, event, *args)

        self._client.on(event, relay)

    @property
    def connected(self) -> bool:
        return bool(getattr(self._client, "connected", False))

    @property
    def sid(self) -> str:
        return getattr(self._client, "sid", None) or ""

    def on(self, event: str, handler: Handler) -> None:
        """Subscribe a handler (sync or async) to an event."""
        self._handlers.setdefault(event, []).append(handler)
        if event not in TRANSPORT_EVENTS + SERVER_EVENTS:
            self._relay(event)

    async def send(
        self,
        event: str,
        payload: Optional[dict] = None,
        callback: Optional[Handler] = None,
    ) -> bool:
        """
        Emit an event to the server.

        Args:
            event: Intent name.
            payload: Optional JSON-able payload.
            callback: Optional acknowledgement callback.

        Returns:
            True if the event was handed to the transport.
        """
        if not self.connected:
            logger.debug(f"Dropped {event}: channel not connected")
            return False
        await self._client.emit(event, payload, callback=callback)
        return True

    def detach(self) -> None:
        """Stop relaying events to subscribers."""
        self._detached = True

    async def close(self) -> None:
        """Disconnect and stop any reconnection attempts."""
        await self._client.shutdown()


async def dispatch_event(handlers: dict[str, list[Handler]], event: str, *args) -> None:
    """Call every subscriber of an event; one failing handler does not starve the rest."""
    for handler in list(handlers.get(event, [])):
        try:
            result = handler(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Handler for {event} failed")


class ChannelManager:
    """
    Establishes and tears down the channel.

    Subscribers registered with on() before connect() see the very first
    `connect` transition.

    Usage:
        manager = ChannelManager(origin)
        manager.on("state:update", reducer_handler)
        channel = await manager.connect()
        await channel.send("rooms:list")
        await channel.close()
    """

    def __init__(
        self,
        origin: str,
        path: Optional[str] = None,
        client_factory: Optional[Callable[[], Any]] = None,
        warmup: Optional[Callable[[str, str], Any]] = None,
    ):
        self.origin = origin
        self.path = path or config.SOCKET_PATH
        if client_factory is None and socketio is not None:
            client_factory = lambda: socketio.AsyncClient(reconnection=True)
        self._client_factory = client_factory
        self._warmup = warmup or warm_up
        self._handlers: dict[str, list[Handler]] = {}
        self._warmed_up = False
        self.channel: Optional[Channel] = None

    @property
    def available(self) -> bool:
        return self._client_factory is not None

    def on(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    async def connect(self) -> Channel:
        """
        Warm up the origin once, then open the channel.

        Raises:
            ClientUnavailableError: The Socket.IO client is not installed.
            ChannelConnectError: The connection attempt failed.
        """
        if not self.available:
            raise ClientUnavailableError(MSG_CLIENT_UNAVAILABLE)

        if not self._warmed_up:
            self._warmed_up = True
            await self._warmup(self.origin, self.path)

        if self.channel is not None:
            await self._discard(self.channel)

        client = self._client_factory()
        channel = Channel(client, self._handlers)
        self.channel = channel

        logger.info(f"Connecting to {self.origin}{self.path}")
        try:
            await client.connect(
                self.origin,
                socketio_path=self.path,
                transports=SOCKET_TRANSPORTS,
            )
        except CONNECT_ERRORS as e:
            message = str(e) or MSG_CONNECT_FAILED
            logger.warning(f"Connect to {self.origin} failed: {message}")
            raise ChannelConnectError(message) from e

        return channel

    async def _discard(self, channel: Channel) -> None:
        # A replaced client must neither feed subscribers nor keep reconnecting
        channel.detach()
        self.channel = None
        await channel.close()

    async def close(self) -> None:
        if self.channel is not None:
            channel, self.channel = self.channel, None
            await channel.close()
