"""
Per-connection session controller.

A GameSession owns everything that lives for one connection: the channel,
the room directory, the view reducer, the intent dispatcher and the result
bridge. It routes server events to the component that owns the affected
state, and exposes the player intents to the presentation layer.

All work happens on one asyncio loop, in event arrival order. Several
sessions can run side by side in the same process without sharing state.

Usage:
    session = GameSession(resolve_origin(config.SOCKET_ORIGIN), "Alice")
    session.on_change(lambda s: print(s.status.message))
    await session.connect()
    await session.create_room()
    await session.toggle_ready()
"""

import logging
from typing import Any, Callable, Optional, Union

from channel import ChannelManager
from config import config
from constants import (
    EVENT_CONNECT,
    EVENT_CONNECT_ERROR,
    EVENT_CREATE_RESULT,
    EVENT_DISCONNECT,
    EVENT_GAME_ERROR,
    EVENT_JOIN_RESULT,
    EVENT_ROOM_LIST_RESULT,
    EVENT_ROOM_LIST_UPDATE,
    EVENT_STATE_UPDATE,
    MSG_CLIENT_UNAVAILABLE,
    MSG_CONNECT_FAILED,
    MSG_GAME_ERROR,
)
from dispatcher import DispatcherState, IntentDispatcher
from errors import ChannelConnectError, ClientUnavailableError, MalformedSnapshotError
from logging_config import get_logger, player_id_var, room_id_var
from models import Card, Color, GameView, JoinResult, RoomSummary
from result_bridge import HostFrame, ResultBridge
from room_directory import RoomDirectory
from services.stats_reporter import StatsReporter
from view_reducer import Status, StatusInputs, TransportState, ViewReducer, derive_status

logger = get_logger(__name__)


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message"):
            if payload.get(key):
                return str(payload[key])
    elif isinstance(payload, str) and payload:
        return payload
    elif isinstance(payload, Exception) and str(payload):
        return str(payload)
    return fallback


class GameSession:
    """
    Controller for one connection to the game server.

    Attributes:
        player_name: Display name sent with create/join.
        connected: Transport is up.
        connecting: A connect attempt is in flight.
        unavailable: Socket.IO client library is missing.
        last_error: Displayable error string, or None.
        me_id: Our socket id once connected.
    """

    def __init__(
        self,
        origin: str,
        player_name: Optional[str] = None,
        *,
        host: Optional[HostFrame] = None,
        stats: Optional[StatsReporter] = None,
        client_factory: Optional[Callable[[], Any]] = None,
        warmup: Optional[Callable[[str, str], Any]] = None,
        ack_timeout: Optional[float] = None,
    ):
        self.player_name = player_name or config.PLAYER_NAME
        self.manager = ChannelManager(origin, client_factory=client_factory, warmup=warmup)

        self.connected = False
        self.connecting = False
        self.unavailable = not self.manager.available
        self.last_error: Optional[str] = None
        self.me_id = ""

        self.directory = RoomDirectory(self._send, ack_timeout=ack_timeout)
        self.reducer = ViewReducer()
        self.dispatcher = IntentDispatcher(
            self._send, self.reducer, self.directory, self.transport_state
        )
        self.bridge = ResultBridge(host=host, stats=stats)

        self._listeners: list[Callable[["GameSession"], None]] = []
        self._wire()

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    def transport_state(self) -> TransportState:
        if self.unavailable:
            return TransportState.UNAVAILABLE
        if self.connected:
            return TransportState.CONNECTED
        if self.connecting:
            return TransportState.CONNECTING
        return TransportState.DISCONNECTED

    @property
    def view(self) -> Optional[GameView]:
        return self.reducer.view

    @property
    def rooms(self) -> list[RoomSummary]:
        return self.directory.rooms

    @property
    def joined(self) -> bool:
        return self.directory.joined

    @property
    def room_id(self) -> Optional[str]:
        return self.directory.active_room_id

    @property
    def state(self) -> DispatcherState:
        return self.dispatcher.state

    @property
    def status(self) -> Status:
        return derive_status(StatusInputs(
            transport=self.transport_state(),
            joined=self.directory.joined,
            view=self.reducer.view,
            last_error=self.last_error,
        ))

    def on_change(self, listener: Callable[["GameSession"], None]) -> None:
        """Register a presentation callback, invoked after every state change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener failed")

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _wire(self) -> None:
        on = self.manager.on
        on(EVENT_CONNECT, self._on_connect)
        on(EVENT_CONNECT_ERROR, self._on_connect_error)
        on(EVENT_DISCONNECT, self._on_disconnect)
        on(EVENT_ROOM_LIST_RESULT, self._on_room_list)
        on(EVENT_ROOM_LIST_UPDATE, self._on_room_update)
        on(EVENT_JOIN_RESULT, self._on_join_result)
        on(EVENT_CREATE_RESULT, self._on_create_result)
        on(EVENT_GAME_ERROR, self._on_game_error)
        on(EVENT_STATE_UPDATE, self._on_state_update)

    async def _send(self, event: str, payload: Optional[dict] = None, callback=None) -> bool:
        channel = self.manager.channel
        if channel is None:
            logger.debug(f"Dropped {event}: no channel")
            return False
        return await channel.send(event, payload, callback)

    async def connect(self) -> bool:
        """
        Open the channel.

        Transport faults are recorded as last_error and leave the session in
        its pre-join state; calling connect() again is the recovery path.

        Returns:
            True if the channel is up.
        """
        if self.connected or self.connecting:
            return self.connected

        if self.unavailable:
            self.last_error = MSG_CLIENT_UNAVAILABLE
            self._notify()
            return False

        self.connecting = True
        self._notify()
        try:
            await self.manager.connect()
        except ClientUnavailableError as e:
            self.unavailable = True
            self.last_error = e.message
            return False
        except ChannelConnectError as e:
            self._reset_to_pre_join()
            self.connected = False
            self.last_error = e.message
            return False
        finally:
            self.connecting = False
            self._notify()
        return True

    async def close(self) -> None:
        """Tear the session down; waits for in-flight stats reports."""
        await self.manager.close()
        self.connected = False
        self._reset_to_pre_join()
        await self.bridge.drain()
        self._notify()

    def _reset_to_pre_join(self) -> None:
        self.dispatcher.on_disconnect()
        self.reducer.clear()
        self.directory.reset()
        room_id_var.set(None)

    async def _on_connect(self) -> None:
        self.connected = True
        self.connecting = False
        self.last_error = None
        channel = self.manager.channel
        self.me_id = channel.sid if channel else ""
        player_id_var.set(self.me_id or None)
        logger.info("Connected")
        self._notify()

        await self.directory.set_display_name(self.player_name)
        await self.directory.request_list()

    def _on_connect_error(self, data: Any = None) -> None:
        self.connected = False
        self._reset_to_pre_join()
        self.last_error = _error_message(data, MSG_CONNECT_FAILED)
        logger.warning(f"Connect error: {self.last_error}")
        self._notify()

    def _on_disconnect(self, *args) -> None:
        was_joined = self.directory.joined
        self.connected = False
        self._reset_to_pre_join()
        logger.info(f"Disconnected{' (left active room)' if was_joined else ''}")
        self._notify()

    # -------------------------------------------------------------------------
    # Server events
    # -------------------------------------------------------------------------

    def _on_room_list(self, payload: Any = None) -> None:
        self.directory.on_list(payload)
        self._notify()

    def _on_room_update(self, payload: Any = None) -> None:
        self.directory.on_update(payload)
        self._notify()

    def _on_join_result(self, payload: Any = None) -> None:
        self.directory.on_join_result(payload)
        self._notify()

    def _on_create_result(self, payload: Any = None) -> None:
        self.directory.on_create_result(payload)
        self._notify()

    def _on_game_error(self, payload: Any = None) -> None:
        self.last_error = _error_message(payload, MSG_GAME_ERROR)
        logger.warning(f"Game error: {self.last_error}")
        self._notify()

    def _on_state_update(self, payload: Any = None) -> None:
        if not payload:
            return
        if not self.directory.joined and self.directory.pending is None:
            logger.debug("Ignoring snapshot while not in a room")
            return

        active = self.directory.active_room_id
        if active and isinstance(payload, dict) and payload.get("roomId"):
            if str(payload["roomId"]) != active:
                logger.info(f"Ignoring snapshot for room {payload['roomId']}; active room is {active}")
                return
        if active and not self.reducer.room_id:
            self.reducer.room_id = active

        try:
            view = self.reducer.apply(payload)
        except MalformedSnapshotError as e:
            self.last_error = e.message
            self._notify()
            return

        self.dispatcher.on_view(view)
        self.bridge.observe(view)
        self._notify()

    # -------------------------------------------------------------------------
    # Lobby intents
    # -------------------------------------------------------------------------

    async def refresh_rooms(self) -> bool:
        return await self.directory.request_list()

    async def create_room(self) -> JoinResult:
        self.last_error = None
        result = await self.directory.create(self.player_name)
        self._after_membership(result)
        return result

    async def join_room(self, room_id: str) -> JoinResult:
        self.last_error = None
        result = await self.directory.join(room_id, self.player_name)
        self._after_membership(result)
        return result

    def _after_membership(self, result: JoinResult) -> None:
        if result.ok:
            room_id_var.set(result.room_id)
            self.reducer.room_id = result.room_id
            logger.with_context(room_id=result.room_id).info("Joined room")
        elif result.error:
            self.last_error = result.error
        self._notify()

    async def set_display_name(self, name: str) -> bool:
        self.player_name = name
        return await self.directory.set_display_name(name)

    async def leave(self) -> bool:
        self.last_error = None
        left = await self.dispatcher.leave()
        if left:
            room_id_var.set(None)
        self._notify()
        return left

    # -------------------------------------------------------------------------
    # Game intents
    # -------------------------------------------------------------------------

    async def play(self, card: Union[Card, str]) -> bool:
        sent = await self.dispatcher.play(card)
        self._notify()
        return sent

    async def pick_color(self, color: Union[Color, str]) -> bool:
        sent = await self.dispatcher.pick_color(color)
        self._notify()
        return sent

    def cancel_wild(self) -> bool:
        cancelled = self.dispatcher.cancel_wild()
        self._notify()
        return cancelled

    async def draw(self) -> bool:
        sent = await self.dispatcher.draw()
        self._notify()
        return sent

    async def toggle_ready(self) -> bool:
        sent = await self.dispatcher.toggle_ready()
        self._notify()
        return sent

    async def restart(self) -> bool:
        sent = await self.dispatcher.restart()
        self._notify()
        return sent
