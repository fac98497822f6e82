"""
Reports a finished game to the embedding host and the stats service.

Terminal snapshots can be delivered more than once (duplicate pushes,
re-subscription after a short disconnect), so reporting is guarded by a
one-shot latch. The latch resets only when a snapshot shows a new game
has started.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from constants import HOST_EVENT_GAME_END, HOST_MESSAGE_SOURCE
from models import GameView
from services.stats_reporter import StatsReporter

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"


@dataclass(frozen=True)
class GameResult:
    """
    Outcome of one game from the local player's seat.

    Attributes:
        outcome: Win or loss.
        points_earned: Points awarded on a win, 0 on a loss.
        room_id: Room the game was played in.
    """
    outcome: Outcome
    points_earned: int
    room_id: Optional[str] = None

    @classmethod
    def from_view(cls, view: GameView) -> "GameResult":
        if view.won:
            return cls(Outcome.WIN, view.over.points, view.room_id)
        return cls(Outcome.LOSS, 0, view.room_id)

    def host_message(self) -> dict:
        return {
            "source": HOST_MESSAGE_SOURCE,
            "type": HOST_EVENT_GAME_END,
            "outcome": self.outcome.value,
            "pointsEarned": self.points_earned,
        }


class HostFrame(Protocol):
    """The embedding host; receives one message per finished game."""

    def post_message(self, message: dict) -> None:
        ...


class CallbackHost:
    """HostFrame backed by a plain callable."""

    def __init__(self, callback: Callable[[dict], None]):
        self._callback = callback

    def post_message(self, message: dict) -> None:
        self._callback(message)


class ResultBridge:
    """
    One-shot outcome reporter.

    Attributes:
        reported: Latch; True once the current game's result went out.
        last_result: Most recent reported result.
    """

    def __init__(
        self,
        host: Optional[HostFrame] = None,
        stats: Optional[StatsReporter] = None,
    ):
        self.host = host
        self.stats = stats
        self.reported = False
        self.last_result: Optional[GameResult] = None
        self._tasks: set[asyncio.Task] = set()

    def observe(self, view: GameView) -> Optional[GameResult]:
        """
        Inspect an accepted snapshot.

        Returns:
            The GameResult if this call reported it, else None.
        """
        if not view.is_over:
            if view.started and self.reported:
                logger.debug("New game started; result latch reset")
                self.reported = False
            return None

        if self.reported:
            return None

        self.reported = True
        result = GameResult.from_view(view)
        self.last_result = result
        logger.info(f"Game over: {result.outcome.value} (+{result.points_earned})")

        self._post_to_host(result)
        self._report_stats(result)
        return result

    def _post_to_host(self, result: GameResult) -> None:
        if self.host is None:
            return
        try:
            self.host.post_message(result.host_message())
        except Exception:
            # Delivery to the host is best effort
            logger.warning("Host frame did not accept game_end message", exc_info=True)

    def _report_stats(self, result: GameResult) -> None:
        if self.stats is None:
            return
        task = asyncio.get_running_loop().create_task(
            self.stats.report(result.outcome.value, result.points_earned, result.room_id)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight stats reports (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
