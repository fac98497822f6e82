"""
Intent dispatcher for the UNO Classic sync client.

Validates each player intent against the current view before it is sent,
and owns the two-step wild-card flow (choose the wild, then pick a color).

States:
    DISCONNECTED -> CONNECTING -> CONNECTED -> NOT_STARTED | PLAYING |
    WILD_PENDING | OVER

Rejected intents are dropped silently (logged at DEBUG): they are local
misuse prevention, not server disagreement. Nothing is queued or retried;
a second play of a card that already left the hand is simply rejected.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from constants import (
    INTENT_DRAW_CARD,
    INTENT_LEAVE_ROOM,
    INTENT_PLAY_CARD,
    INTENT_START_GAME,
    INTENT_TOGGLE_READY,
)
from models import Card, Color, GameView
from room_directory import RoomDirectory
from view_reducer import TransportState, ViewReducer, is_my_turn, is_playable

logger = logging.getLogger(__name__)

Sender = Callable[..., Awaitable[bool]]


class DispatcherState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    NOT_STARTED = "not_started"
    PLAYING = "playing"
    WILD_PENDING = "wild_pending"
    OVER = "over"


@dataclass(frozen=True)
class PendingWildSelection:
    """A wild card chosen for play but not yet given a color."""

    card_id: str


class IntentDispatcher:
    """
    Validates and emits player intents.

    Attributes:
        pending: The wild card awaiting a color, if any.
    """

    def __init__(
        self,
        send: Sender,
        reducer: ViewReducer,
        directory: RoomDirectory,
        transport: Callable[[], TransportState],
    ):
        self._send = send
        self._reducer = reducer
        self._directory = directory
        self._transport = transport
        self.pending: Optional[PendingWildSelection] = None

    @property
    def state(self) -> DispatcherState:
        transport = self._transport()
        if transport in (TransportState.UNAVAILABLE, TransportState.DISCONNECTED):
            return DispatcherState.DISCONNECTED
        if transport == TransportState.CONNECTING:
            return DispatcherState.CONNECTING
        if not self._directory.joined:
            return DispatcherState.CONNECTED

        view = self._reducer.view
        if view is not None and view.is_over:
            return DispatcherState.OVER
        if view is None or not view.started:
            return DispatcherState.NOT_STARTED
        if self.pending is not None:
            return DispatcherState.WILD_PENDING
        return DispatcherState.PLAYING

    def _reject(self, intent: str, reason: str) -> bool:
        logger.debug(f"Rejected {intent}: {reason}")
        return False

    # -------------------------------------------------------------------------
    # Turn actions
    # -------------------------------------------------------------------------

    async def play(self, card: Union[Card, str]) -> bool:
        """
        Play a card from the hand.

        A wild card is staged as a PendingWildSelection instead of being
        sent; pick_color() completes it.

        Args:
            card: The card, or its id.

        Returns:
            True if a play was sent or a wild was staged.
        """
        state = self.state
        if state != DispatcherState.PLAYING:
            return self._reject("play", f"state is {state.value}")

        view = self._reducer.view
        if not is_my_turn(view):
            return self._reject("play", "not your turn")

        card_id = card.id if isinstance(card, Card) else str(card)
        held = view.card(card_id)
        if held is None:
            return self._reject("play", f"card {card_id} is not in hand")
        if not is_playable(held, view.top_card, view.active_color):
            return self._reject("play", f"card {card_id} is not playable")

        if held.is_wild:
            self.pending = PendingWildSelection(card_id=held.id)
            logger.debug(f"Wild {held.id} awaiting color")
            return True

        return await self._send(INTENT_PLAY_CARD, {"cardId": held.id})

    async def pick_color(self, color: Union[Color, str]) -> bool:
        """
        Complete a pending wild play with the chosen color.

        The pending selection is cleared whether or not the emit succeeds;
        the next snapshot is the source of truth.
        """
        pending = self.pending
        if pending is None:
            return self._reject("pick_color", "no wild pending")
        try:
            color = Color(color)
        except ValueError:
            return self._reject("pick_color", f"unknown color {color!r}")
        if not is_my_turn(self._reducer.view):
            return self._reject("pick_color", "not your turn")

        self.pending = None
        return await self._send(
            INTENT_PLAY_CARD,
            {"cardId": pending.card_id, "selectedColor": color.value},
        )

    def cancel_wild(self) -> bool:
        """Drop a staged wild without sending anything."""
        if self.pending is None:
            return False
        self.pending = None
        return True

    async def draw(self) -> bool:
        state = self.state
        if state != DispatcherState.PLAYING:
            return self._reject("draw", f"state is {state.value}")
        if not is_my_turn(self._reducer.view):
            return self._reject("draw", "not your turn")
        return await self._send(INTENT_DRAW_CARD)

    # -------------------------------------------------------------------------
    # Room actions
    # -------------------------------------------------------------------------

    async def toggle_ready(self) -> bool:
        """Ready handshake; allowed regardless of turn while the game is not over."""
        if not self._directory.joined:
            return self._reject("toggle_ready", "not in a room")
        view = self._reducer.view
        if view is None or view.is_over:
            return self._reject("toggle_ready", "no live game")
        return await self._send(INTENT_TOGGLE_READY)

    async def restart(self) -> bool:
        """Play again; only accepted once the game is over."""
        state = self.state
        if state != DispatcherState.OVER:
            return self._reject("restart", f"state is {state.value}")
        return await self._send(INTENT_START_GAME)

    async def leave(self) -> bool:
        """
        Leave the active room.

        Local state (view, active room, pending wild) is discarded before
        the server is told, so a delayed or lost acknowledgement cannot
        leave the client looking at an abandoned room.
        """
        if not self._directory.joined and self._directory.pending is None:
            return self._reject("leave", "not in a room")

        room_id = self._directory.active_room_id
        self.pending = None
        self._reducer.clear()
        self._directory.clear_active()
        logger.info(f"Left room {room_id}")

        await self._send(INTENT_LEAVE_ROOM, {}, _ignore_ack)
        await self._directory.request_list()
        return True

    # -------------------------------------------------------------------------
    # Snapshot / transport hooks
    # -------------------------------------------------------------------------

    def on_view(self, view: GameView) -> None:
        """Drop a pending wild once the game ends or the card leaves the hand."""
        if self.pending is None:
            return
        if view.is_over or view.card(self.pending.card_id) is None:
            logger.debug(f"Cleared pending wild {self.pending.card_id}")
            self.pending = None

    def on_disconnect(self) -> None:
        self.pending = None


def _ignore_ack(*args) -> None:
    """Leave acknowledgements carry nothing we act on."""
