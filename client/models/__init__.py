"""Models package for the UNO Classic sync client."""

from .cards import Card, CardType, Color, WILD_TYPES, card_label
from .view import GameOver, GameView, JoinResult, RoomSummary, parse_room_list

__all__ = [
    "Card",
    "CardType",
    "Color",
    "WILD_TYPES",
    "card_label",
    "GameOver",
    "GameView",
    "JoinResult",
    "RoomSummary",
    "parse_room_list",
]
