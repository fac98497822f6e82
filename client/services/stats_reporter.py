"""
Client for the external stats collaborator.

Posts a finished game's outcome to the profile/stats endpoint and returns
the updated cumulative totals. Reports are fire-and-forget from the game's
point of view: failures are logged, never retried, and never block play.

Usage:
    reporter = StatsReporter("https://example.com/api/uno")
    totals = await reporter.report("win", points_earned=42, game_id="ABCD")
    if totals:
        print(totals.points, totals.win_streak)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import aiohttp

from config import config

logger = logging.getLogger(__name__)


@dataclass
class StatsTotals:
    """Cumulative totals returned by the stats endpoint."""
    points: int = 0
    points_delta: int = 0
    total_wins: int = 0
    total_losses: int = 0
    win_streak: int = 0

    @classmethod
    def from_dict(cls, d: dict) -> "StatsTotals":
        def as_int(key: str) -> int:
            try:
                return int(d.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        return cls(
            points=as_int("points"),
            points_delta=as_int("pointsDelta"),
            total_wins=as_int("total_wins"),
            total_losses=as_int("total_losses"),
            win_streak=as_int("win_streak"),
        )


class StatsReporter:
    """
    Reports game outcomes for the authenticated actor.

    When an internal key is configured the report is sent on behalf of
    `user_id` (service-to-service); otherwise the endpoint resolves the
    actor from its own session.
    """

    def __init__(
        self,
        url: str,
        internal_key: Optional[str] = None,
        user_id: Optional[str] = None,
        game_name: Optional[str] = None,
        timeout: Optional[float] = None,
        session_factory: Optional[Callable[..., Any]] = None,
    ):
        self.url = url
        self.internal_key = internal_key if internal_key is not None else config.INTERNAL_KEY
        self.user_id = user_id if user_id is not None else config.USER_ID
        self.game_name = game_name or config.GAME_NAME
        self.timeout = timeout if timeout is not None else config.STATS_TIMEOUT_SECONDS
        self._session_factory = session_factory or aiohttp.ClientSession

    def build_payload(self, outcome: str, points_earned: int, game_id: Optional[str]) -> dict:
        body = {
            "outcome": outcome,
            "pointsEarned": points_earned if outcome == "win" else 0,
            "game": self.game_name,
        }
        if game_id:
            body["gameId"] = game_id
        if self.internal_key and self.user_id:
            body["userId"] = self.user_id
        return body

    async def report(
        self,
        outcome: str,
        points_earned: int = 0,
        game_id: Optional[str] = None,
    ) -> Optional[StatsTotals]:
        """
        Send one outcome report.

        Args:
            outcome: "win" or "loss".
            points_earned: Points awarded (ignored on loss).
            game_id: Room/game identifier.

        Returns:
            Updated totals, or None if the report failed.
        """
        body = self.build_payload(outcome, points_earned, game_id)
        headers = {"x-uno-internal-key": self.internal_key} if self.internal_key else {}

        try:
            async with self._session_factory(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(self.url, json=body, headers=headers) as response:
                    if response.status >= 400:
                        logger.warning(f"Stats report rejected: HTTP {response.status}")
                        return None
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Stats report failed: {e!r}")
            return None

        if not isinstance(data, dict):
            logger.warning("Stats report returned an unexpected body")
            return None

        totals = StatsTotals.from_dict(data)
        logger.info(
            f"Stats recorded: {outcome} (+{totals.points_delta}), "
            f"total {totals.points} points, streak {totals.win_streak}"
        )
        return totals
