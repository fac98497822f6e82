"""Console driver for the UNO Classic sync client."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import sentry_sdk

from channel import resolve_origin
from config import config
from logging_config import setup_logging
from models import card_label
from result_bridge import CallbackHost
from services.stats_reporter import StatsReporter
from session import GameSession
from view_reducer import playable_ids

logger = logging.getLogger(__name__)

HELP = """Commands:
  list            refresh the room list
  create          create a room
  join CODE       join a room
  ready           toggle ready
  play N          play the N-th card of your hand (1-based)
  color C         choose a color for a pending wild (red/yellow/green/blue)
  cancel          put a pending wild back
  draw            draw a card
  again           play again after the game ends
  leave           leave the room
  status          show the table
  quit            disconnect and exit"""


def init_sentry() -> None:
    if not config.SENTRY_DSN:
        return
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.ENVIRONMENT,
        traces_sample_rate=0.1 if config.ENVIRONMENT == "production" else 1.0,
    )
    logger.info("Sentry error tracking initialized")


def render_table(session: GameSession) -> str:
    """Plain-text rendering of the current session."""
    lines = [f"[{session.state.value}] {session.status.message}"]
    if not session.joined:
        if not session.rooms:
            lines.append("  No active rooms")
        for room in session.rooms:
            lines.append(f"  {room.room_id}  {room.players_count}/2  {room.status_label}")
        return "\n".join(lines)

    view = session.view
    lines.append(f"  Room: {session.room_id or '-'}")
    if view is None:
        return "\n".join(lines)

    you = view.me_name or session.player_name
    ready = " (READY)" if view.me_ready else ""
    opp_ready = " (READY)" if view.opponent_ready else ""
    lines.append(f"  You: {you}{ready}   Opponent: {view.opponent_name or '-'}{opp_ready}")
    if view.started:
        top = f"{card_label(view.top_card)} {view.top_card.color.value if view.top_card and view.top_card.color else ''}"
        lines.append(
            f"  Top: {top.strip()}  Active: {view.active_color.value.upper()}  "
            f"Draw pile: {view.deck_count}  Opponent cards: {view.opponent_count}"
        )
        legal = playable_ids(view)
        hand = []
        for i, card in enumerate(view.your_hand, 1):
            color = card.color.value if card.color else "wild"
            mark = "*" if card.id in legal else " "
            hand.append(f"{mark}{i}:{card_label(card)}/{color}")
        lines.append("  Hand: " + " ".join(hand))
    if session.dispatcher.pending:
        lines.append("  Choose a color: red / yellow / green / blue")
    return "\n".join(lines)


async def handle_command(session: GameSession, line: str) -> bool:
    """Run one console command; returns False when the user quits."""
    parts = line.strip().split()
    if not parts:
        return True
    cmd, args = parts[0].lower(), parts[1:]

    if cmd in ("quit", "exit"):
        return False
    if cmd == "help":
        print(HELP)
    elif cmd == "list":
        await session.refresh_rooms()
    elif cmd == "create":
        await session.create_room()
    elif cmd == "join" and args:
        await session.join_room(args[0])
    elif cmd == "ready":
        await session.toggle_ready()
    elif cmd == "play" and args:
        view = session.view
        try:
            index = int(args[0]) - 1
        except ValueError:
            index = -1
        if view is not None and 0 <= index < len(view.your_hand):
            await session.play(view.your_hand[index])
    elif cmd == "color" and args:
        await session.pick_color(args[0].lower())
    elif cmd == "cancel":
        session.cancel_wild()
    elif cmd == "draw":
        await session.draw()
    elif cmd == "again":
        await session.restart()
    elif cmd == "leave":
        await session.leave()
    elif cmd == "status":
        print(render_table(session))
    else:
        print(HELP)
    return True


async def run_console(origin: str, name: str, stats_url: Optional[str]) -> None:
    stats = None
    if config.STATS_ENABLED and stats_url:
        stats = StatsReporter(stats_url)

    host = CallbackHost(lambda message: print(json.dumps(message)))
    session = GameSession(origin, name, host=host, stats=stats)

    last_status = {"text": ""}

    def show_status(s: GameSession) -> None:
        text = render_table(s)
        if text != last_status["text"]:
            last_status["text"] = text
            print(text)

    session.on_change(show_status)
    await session.connect()

    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not await handle_command(session, line):
                break
    finally:
        await session.close()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="UNO Classic console client")
    parser.add_argument("--origin", default="", help="Server origin (overrides UNO_SOCKET_ORIGIN)")
    parser.add_argument("--page-origin", default="", help="Origin the client is served from")
    parser.add_argument("--name", default=config.PLAYER_NAME, help="Display name")
    parser.add_argument("--stats-url", default=config.STATS_URL, help="Stats endpoint URL")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None) -> None:
    """Entry point for the console client."""
    setup_logging(level=config.LOG_LEVEL, environment=config.ENVIRONMENT)
    init_sentry()

    args = parse_args(argv)
    origin = resolve_origin(
        override=args.origin or config.SOCKET_ORIGIN,
        page_origin=args.page_origin,
    )
    stats_url = args.stats_url or (f"{args.page_origin.rstrip('/')}/api/uno" if args.page_origin else "")

    logger.info(f"Starting UNO Classic client against {origin}")
    print(HELP)
    asyncio.run(run_console(origin, args.name, stats_url or None))


if __name__ == "__main__":
    run()
