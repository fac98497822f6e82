"""
Validated wire types for server-pushed state.

GameView is the per-connection snapshot pushed on every `state:update`.
Snapshots are total: each one supersedes every earlier one, so there is
no partial/patch form here. Payloads that do not validate are rejected
at the boundary rather than coerced to defaults.
"""

from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from models.cards import Card, Color


def _coerce_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class GameOver(BaseModel):
    """Terminal outcome of a game."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    winner_id: str = Field(alias="winnerId")
    points: int = Field(default=0, ge=0)

    coerce_winner = field_validator("winner_id", mode="before")(_coerce_id)


class GameView(BaseModel):
    """
    The authoritative per-connection snapshot.

    Attributes:
        room_id: Room code, if the server included it.
        me_id: Local player identifier (the socket id on the server side).
        turn_id: Player whose turn it is.
        top_card: Top of the discard pile.
        active_color: Color new plays must match; always one of the four.
        your_hand: Local player's hand. Order is display-only.
        opponent_count: Cards left in the opponent's hand.
        deck_count: Cards left in the draw pile.
        me_ready / opponent_ready: Pre-game ready handshake flags.
        started: Whether the game has started.
        over: Terminal outcome, None while in progress.
        me_name / opponent_name: Seat display names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    room_id: Optional[str] = Field(default=None, alias="roomId")
    me_id: str = Field(alias="meId", min_length=1)
    turn_id: Optional[str] = Field(default=None, alias="turnId")
    top_card: Optional[Card] = Field(default=None, alias="topCard")
    active_color: Color = Field(default=Color.RED, alias="activeColor")
    your_hand: tuple[Card, ...] = Field(default=(), alias="yourHand")
    opponent_count: int = Field(default=0, alias="opponentCount", ge=0)
    deck_count: int = Field(default=0, alias="deckCount", ge=0)
    me_ready: bool = Field(default=False, alias="meReady")
    opponent_ready: bool = Field(default=False, alias="opponentReady")
    started: bool
    over: Optional[GameOver] = None
    me_name: Optional[str] = Field(default=None, alias="meName")
    opponent_name: Optional[str] = Field(default=None, alias="opponentName")

    coerce_ids = field_validator("room_id", "me_id", "turn_id", mode="before")(_coerce_id)

    @field_validator("room_id", "me_name", "opponent_name", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _playing_needs_table(self) -> "GameView":
        if self.started and self.over is None:
            if self.top_card is None:
                raise ValueError("started game without a top card")
            if not self.turn_id:
                raise ValueError("started game without a turn holder")
            # Defaults only stand in for fields a lobby snapshot may omit
            for name in ("active_color", "your_hand"):
                if name not in self.model_fields_set:
                    raise ValueError(f"started game without {name}")
        ids = [card.id for card in self.your_hand]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate card ids in hand")
        return self

    @property
    def is_over(self) -> bool:
        return self.over is not None

    @property
    def won(self) -> bool:
        return self.over is not None and self.over.winner_id == self.me_id

    @property
    def has_opponent(self) -> bool:
        return bool(self.opponent_name)

    def card(self, card_id: str) -> Optional[Card]:
        """Find a card in the local hand by id."""
        for card in self.your_hand:
            if card.id == card_id:
                return card
        return None


class RoomSummary(BaseModel):
    """Lobby-level summary of one open room."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)
    players_count: int = Field(default=0, alias="playersCount", ge=0)
    started: bool = False
    over: bool = False

    coerce_room = field_validator("room_id", mode="before")(_coerce_id)

    @property
    def status_label(self) -> str:
        if self.started:
            return "In progress"
        if self.over:
            return "Ended"
        return "Waiting"


def parse_room_list(payload: Any) -> list[RoomSummary]:
    """
    Parse a room-list event payload ({"rooms": [...]}) into summaries.

    A missing or non-list `rooms` is treated as empty. Entries that fail
    validation (e.g. no room id) are dropped individually.
    """
    rooms = payload.get("rooms") if isinstance(payload, dict) else None
    if not isinstance(rooms, list):
        return []

    summaries = []
    for entry in rooms:
        try:
            summaries.append(RoomSummary.model_validate(entry))
        except ValidationError:
            continue
    return summaries


class JoinResult(BaseModel):
    """
    Outcome of a create/join request.

    Accepts both the acknowledgement shape ({"gameId": ...}) and the
    result-event shape ({"ok", "roomId", "error"}).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ok: bool = False
    room_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("roomId", "gameId", "room_id"),
    )
    error: Optional[str] = None

    coerce_room = field_validator("room_id", mode="before")(_coerce_id)

    @model_validator(mode="before")
    @classmethod
    def _infer_ok(cls, data: Any) -> Any:
        # A bare {"gameId": ...} acknowledgement means success
        if isinstance(data, dict) and "ok" not in data:
            data = dict(data)
            room = data.get("roomId") or data.get("gameId") or data.get("room_id")
            data["ok"] = bool(room) and not data.get("error")
        return data

    @classmethod
    def failure(cls, error: str) -> "JoinResult":
        return cls(ok=False, error=error)

    @classmethod
    def from_wire(cls, payload: Any, fallback_error: str) -> "JoinResult":
        """Validate a server result, mapping anything unusable to a failure."""
        if not isinstance(payload, dict):
            return cls.failure(fallback_error)
        try:
            result = cls.model_validate(payload)
        except ValidationError:
            return cls.failure(fallback_error)
        if not result.ok:
            return cls.failure(result.error or fallback_error)
        return result
