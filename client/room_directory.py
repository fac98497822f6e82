"""
Room directory for the UNO Classic lobby.

Caches the server's list of open rooms and issues create/join requests.
The room list is replaced wholesale on every list/update event; the server
always sends the complete list.

Create/join results are correlated by the Socket.IO acknowledgement
callback, or by the matching result event while the request is still
outstanding. Leaving or disconnecting bumps a membership epoch and
abandons the outstanding request, so an acknowledgement that arrives late
can never put the player back into a room they left.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from config import config
from constants import (
    INTENT_CREATE_ROOM,
    INTENT_JOIN_ROOM,
    INTENT_LIST_ROOMS,
    INTENT_SET_PLAYER_DATA,
    MSG_ACK_TIMEOUT,
    MSG_CREATE_FAILED,
    MSG_JOIN_FAILED,
)
from models import JoinResult, RoomSummary, parse_room_list

logger = logging.getLogger(__name__)

Sender = Callable[..., Awaitable[bool]]

MSG_NOT_CONNECTED = "Not connected"
MSG_ROOM_CODE_REQUIRED = "Enter a room code"


@dataclass
class PendingRequest:
    """
    An outstanding create/join request.

    Attributes:
        kind: "create" or "join".
        future: Resolved with the JoinResult.
        epoch: Membership epoch the request was issued in.
        fallback_error: Error shown when the server gives no message.
        room_id: Requested room (join only).
    """

    kind: str
    future: asyncio.Future
    epoch: int
    fallback_error: str
    room_id: Optional[str] = None


class RoomDirectory:
    """
    Owns the RoomSummary list and the active-room linkage.

    Attributes:
        rooms: Latest complete room list from the server.
        active_room_id: Room this connection has joined, or None.
        epoch: Membership epoch; bumped by every leave/disconnect.
    """

    def __init__(self, send: Sender, ack_timeout: Optional[float] = None):
        self._send = send
        self.ack_timeout = ack_timeout if ack_timeout is not None else config.ACK_TIMEOUT_SECONDS
        self.rooms: list[RoomSummary] = []
        self.active_room_id: Optional[str] = None
        self.epoch = 0
        self._pending: Optional[PendingRequest] = None

    @property
    def joined(self) -> bool:
        return self.active_room_id is not None

    @property
    def pending(self) -> Optional[PendingRequest]:
        return self._pending

    # -------------------------------------------------------------------------
    # Room list
    # -------------------------------------------------------------------------

    async def request_list(self) -> bool:
        return await self._send(INTENT_LIST_ROOMS)

    def on_list(self, payload: Any) -> None:
        """Handle rooms:list:result."""
        self.rooms = parse_room_list(payload)
        logger.debug(f"Room list: {len(self.rooms)} room(s)")

    def on_update(self, payload: Any) -> None:
        """Handle rooms:update; same wholesale replacement as on_list."""
        self.on_list(payload)

    def find(self, room_id: str) -> Optional[RoomSummary]:
        for room in self.rooms:
            if room.room_id == room_id:
                return room
        return None

    # -------------------------------------------------------------------------
    # Create / join
    # -------------------------------------------------------------------------

    async def create(self, display_name: str) -> JoinResult:
        """Ask the server for a new room; success makes it the active room."""
        return await self._request(
            "create",
            INTENT_CREATE_ROOM,
            {"playerName": display_name},
            MSG_CREATE_FAILED,
        )

    async def join(self, room_id: str, display_name: str) -> JoinResult:
        """Join an existing room by code; success makes it the active room."""
        room_id = str(room_id or "").strip()
        if not room_id:
            return JoinResult.failure(MSG_ROOM_CODE_REQUIRED)
        return await self._request(
            "join",
            INTENT_JOIN_ROOM,
            {"gameId": room_id, "playerName": display_name},
            MSG_JOIN_FAILED,
            room_id=room_id,
        )

    async def _request(
        self,
        kind: str,
        intent: str,
        payload: dict,
        fallback_error: str,
        room_id: Optional[str] = None,
    ) -> JoinResult:
        if self._pending is not None and not self._pending.future.done():
            # Double-click: share the outstanding request instead of queueing another
            return await asyncio.shield(self._pending.future)

        pending = PendingRequest(
            kind=kind,
            future=asyncio.get_running_loop().create_future(),
            epoch=self.epoch,
            fallback_error=fallback_error,
            room_id=room_id,
        )
        self._pending = pending

        def on_ack(*args):
            self._settle(pending, args[0] if args else None)

        try:
            sent = await self._send(intent, payload, on_ack)
            if not sent:
                self._finish(pending, JoinResult.failure(MSG_NOT_CONNECTED))
            else:
                try:
                    await asyncio.wait_for(asyncio.shield(pending.future), self.ack_timeout)
                except asyncio.TimeoutError:
                    logger.warning(f"No answer to {intent} within {self.ack_timeout}s")
                    self._finish(pending, JoinResult.failure(MSG_ACK_TIMEOUT))
            return pending.future.result()
        finally:
            if self._pending is pending:
                self._pending = None

    @staticmethod
    def _finish(pending: PendingRequest, result: JoinResult) -> None:
        # Settled requests ignore any later acknowledgement
        if not pending.future.done():
            pending.future.set_result(result)

    def on_join_result(self, payload: Any) -> None:
        """Handle room:join:result (also sent after a successful create)."""
        if self._pending is None:
            logger.debug("Ignoring join result with no outstanding request")
            return
        self._settle(self._pending, payload)

    def on_create_result(self, payload: Any) -> None:
        """Handle room:create:result."""
        if self._pending is None or self._pending.kind != "create":
            logger.debug("Ignoring create result with no outstanding create")
            return
        self._settle(self._pending, payload)

    def _settle(self, pending: PendingRequest, payload: Any) -> None:
        if pending.future.done():
            return
        if pending.epoch != self.epoch:
            logger.info(f"Ignoring late {pending.kind} result for an abandoned request")
            pending.future.set_result(JoinResult(ok=False))
            return

        result = JoinResult.from_wire(payload, pending.fallback_error)
        if result.ok:
            room_id = result.room_id or pending.room_id
            if not room_id:
                result = JoinResult.failure(pending.fallback_error)
            else:
                result = JoinResult(ok=True, room_id=room_id)
                self.active_room_id = room_id
                logger.info(f"Active room is now {room_id} (via {pending.kind})")
        pending.future.set_result(result)

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    async def set_display_name(self, display_name: str) -> bool:
        return await self._send(INTENT_SET_PLAYER_DATA, {"playerName": display_name})

    def clear_active(self) -> None:
        """
        Drop the active room and abandon any outstanding request.

        Called synchronously by leave and on disconnect; any acknowledgement
        that arrives afterwards is ignored.
        """
        self.epoch += 1
        self.active_room_id = None
        pending, self._pending = self._pending, None
        if pending is not None:
            self._finish(pending, JoinResult(ok=False))

    def reset(self) -> None:
        """Discard everything (disconnect)."""
        self.clear_active()
        self.rooms = []
