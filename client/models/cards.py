"""
Card model for UNO Classic.

Cards arrive from the server as plain dicts ({"id", "type", "color"}) and
are validated into immutable Card instances at the transport boundary.

Card types use the server's wire names:
    - "0".."9": numerals
    - "block": skip
    - "reverse": reverse
    - "buy-2": draw two
    - "change-color": wild
    - "buy-4": wild draw four
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class Color(str, Enum):
    """The four playable colors. Wild cards carry none until resolved."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"


class CardType(str, Enum):
    """Card face types, valued by their wire names."""

    ZERO = "0"
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    SKIP = "block"
    REVERSE = "reverse"
    DRAW_TWO = "buy-2"
    WILD = "change-color"
    WILD_DRAW_FOUR = "buy-4"

    @property
    def is_wild(self) -> bool:
        return self in WILD_TYPES

    @property
    def is_numeral(self) -> bool:
        return self.value.isdigit()


WILD_TYPES = frozenset({CardType.WILD, CardType.WILD_DRAW_FOUR})

_LABELS = {
    CardType.SKIP: "SKIP",
    CardType.REVERSE: "REV",
    CardType.DRAW_TWO: "+2",
    CardType.WILD: "WILD",
    CardType.WILD_DRAW_FOUR: "+4",
}


class Card(BaseModel):
    """
    A single card as seen by this client.

    Attributes:
        id: Opaque identifier, unique within a hand/table at any instant.
        type: Face type.
        color: Card color; None for an unresolved wild.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: CardType
    color: Optional[Color] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if isinstance(data.get("id"), int) and not isinstance(data.get("id"), bool):
            data["id"] = str(data["id"])
        if isinstance(data.get("type"), int) and not isinstance(data.get("type"), bool):
            data["type"] = str(data["type"])
        color = data.get("color")
        wild = data.get("type") in (CardType.WILD.value, CardType.WILD_DRAW_FOUR.value)
        # Servers tag unresolved wilds as "", "black" or "wild"
        if color in ("", None) or (wild and color not in [c.value for c in Color]):
            data["color"] = None
        return data

    @model_validator(mode="after")
    def _colored_unless_wild(self) -> "Card":
        if self.color is None and not self.type.is_wild:
            raise ValueError(f"card {self.id} of type {self.type.value} has no color")
        return self

    @property
    def is_wild(self) -> bool:
        return self.type.is_wild

    @property
    def label(self) -> str:
        return card_label(self)


def card_label(card: Optional[Card]) -> str:
    """Short display label: the digit for numerals, otherwise SKIP/REV/+2/WILD/+4."""
    if card is None:
        return ""
    if card.type.is_numeral:
        return card.type.value
    return _LABELS[card.type]
