"""
View reducer for the UNO Classic sync client.

Owns the single local GameView. Every `state:update` replaces it wholesale:
snapshots are total and idempotent, so the last one received is always
correct and no version reconciliation is needed.

Everything derived from the view (card legality, turn ownership, the
status line) is a pure function, recomputed on demand and never cached.

Legality rules (advisory; the server remains the authority):
    - Wild and wild draw four are always playable
    - Otherwise a card is playable if its color matches the active color
      or its type matches the top card's type
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from constants import MSG_CLIENT_UNAVAILABLE, MSG_MALFORMED_SNAPSHOT
from errors import MalformedSnapshotError
from models import Card, Color, GameView

logger = logging.getLogger(__name__)


# =============================================================================
# Legality
# =============================================================================

def is_playable(card: Card, top_card: Optional[Card], active_color: Color) -> bool:
    """
    Check whether a card may be played onto the table.

    Args:
        card: Candidate card from the hand.
        top_card: Top of the discard pile; None means nothing is playable.
        active_color: Current active color.

    Returns:
        True if the card is legal to play.
    """
    if top_card is None:
        return False
    if card.is_wild:
        return True
    if card.color == active_color:
        return True
    return card.type == top_card.type


def playable_cards(view: Optional[GameView]) -> list[Card]:
    """Legal cards in the local hand; empty unless the game is running."""
    if view is None or not view.started or view.is_over:
        return []
    return [c for c in view.your_hand if is_playable(c, view.top_card, view.active_color)]


def playable_ids(view: Optional[GameView]) -> set[str]:
    return {card.id for card in playable_cards(view)}


def is_my_turn(view: Optional[GameView]) -> bool:
    """Turn ownership: started, not over, and the turn holder is us."""
    if view is None or not view.started or view.is_over:
        return False
    return view.turn_id == view.me_id


# =============================================================================
# Status
# =============================================================================

class TransportState(str, Enum):
    """Connection state of the channel, as seen by the status line."""

    UNAVAILABLE = "unavailable"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class StatusKind(str, Enum):
    CLIENT_UNAVAILABLE = "client_unavailable"
    CONNECTING = "connecting"
    ERROR = "error"
    LOBBY = "lobby"
    WAITING_FOR_STATE = "waiting_for_state"
    PRE_GAME = "pre_game"
    YOUR_TURN = "your_turn"
    OPPONENT_TURN = "opponent_turn"
    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class StatusInputs:
    """The full input tuple of derive_status; nothing else influences it."""

    transport: TransportState
    joined: bool
    view: Optional[GameView] = None
    last_error: Optional[str] = None


@dataclass(frozen=True)
class Status:
    kind: StatusKind
    message: str


def _pre_game_message(view: GameView) -> str:
    me_ready = view.me_ready
    if not view.has_opponent:
        return "Waiting for opponent to join" if me_ready else "Waiting for opponent"
    opp_ready = view.opponent_ready
    if me_ready and opp_ready:
        return "Starting…"
    if me_ready:
        return "Waiting for opponent to get ready"
    if opp_ready:
        return "Opponent is ready"
    return "Click Get Ready"


def derive_status(inputs: StatusInputs) -> Status:
    """Map (transport, joined, view, last error) to the displayed status."""
    error = inputs.last_error
    view = inputs.view

    if inputs.transport == TransportState.UNAVAILABLE:
        return Status(StatusKind.CLIENT_UNAVAILABLE, MSG_CLIENT_UNAVAILABLE)
    if inputs.transport in (TransportState.DISCONNECTED, TransportState.CONNECTING):
        if error:
            return Status(StatusKind.ERROR, error)
        return Status(StatusKind.CONNECTING, "Connecting…")
    if not inputs.joined:
        if error:
            return Status(StatusKind.ERROR, error)
        return Status(StatusKind.LOBBY, "Pick a room or create one")
    if view is None:
        return Status(StatusKind.WAITING_FOR_STATE, "Waiting for state…")
    if view.is_over:
        if view.won:
            return Status(StatusKind.WON, f"You won +{view.over.points} points")
        return Status(StatusKind.LOST, "You lost")
    if not view.started:
        if error:
            return Status(StatusKind.ERROR, error)
        return Status(StatusKind.PRE_GAME, _pre_game_message(view))
    if is_my_turn(view):
        return Status(StatusKind.YOUR_TURN, "Your turn")
    return Status(StatusKind.OPPONENT_TURN, "Opponent's turn")


# =============================================================================
# Reducer
# =============================================================================

class ViewReducer:
    """
    Holds the current GameView.

    Attributes:
        view: Latest accepted snapshot, or None before the first one.
        room_id: Last known room id, kept when a snapshot omits it.
    """

    def __init__(self):
        self.view: Optional[GameView] = None
        self.room_id: Optional[str] = None

    def apply(self, payload: Any) -> GameView:
        """
        Replace the current view with an incoming snapshot.

        Args:
            payload: Raw `state:update` payload or an already-built GameView.

        Returns:
            The accepted view.

        Raises:
            MalformedSnapshotError: Payload failed validation; the previous
                view is kept.
        """
        if isinstance(payload, GameView):
            view = payload
        else:
            try:
                view = GameView.model_validate(payload)
            except ValidationError as e:
                logger.warning(f"Rejected malformed snapshot: {e.error_count()} error(s)")
                raise MalformedSnapshotError(MSG_MALFORMED_SNAPSHOT, payload) from e

        if view.room_id:
            self.room_id = view.room_id
        elif self.room_id:
            view = view.model_copy(update={"room_id": self.room_id})

        self.view = view
        return view

    def clear(self) -> None:
        self.view = None
        self.room_id = None

    @property
    def my_turn(self) -> bool:
        return is_my_turn(self.view)

    @property
    def playable_ids(self) -> set[str]:
        return playable_ids(self.view)

    def is_card_playable(self, card: Card) -> bool:
        view = self.view
        if view is None or not view.started:
            return False
        return is_playable(card, view.top_card, view.active_color)
