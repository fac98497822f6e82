"""
Test suite for the console driver.

Run with: pytest test_main.py -v
"""

import pytest

from conftest import FakeSocketClient, make_snapshot, no_warmup
from constants import INTENT_JOIN_ROOM, INTENT_PLAY_CARD
from main import handle_command, parse_args, render_table
from session import GameSession


async def connected_session():
    client = FakeSocketClient()
    client.acks[INTENT_JOIN_ROOM] = {"ok": True, "roomId": "ROOM1"}
    session = GameSession(
        "http://localhost:4000",
        "Alice",
        client_factory=lambda: client,
        warmup=no_warmup,
        ack_timeout=1.0,
    )
    await session.connect()
    return session, client


class TestRenderTable:

    @pytest.mark.asyncio
    async def test_lobby(self):
        session, client = await connected_session()
        await client.push("rooms:list:result", {"rooms": [{"roomId": "AB12", "playersCount": 1}]})
        text = render_table(session)
        assert "Pick a room or create one" in text
        assert "AB12  1/2  Waiting" in text

    @pytest.mark.asyncio
    async def test_empty_lobby(self):
        session, _ = await connected_session()
        assert "No active rooms" in render_table(session)

    @pytest.mark.asyncio
    async def test_game_marks_playable_cards(self):
        session, client = await connected_session()
        await handle_command(session, "join ROOM1")
        await client.push("state:update", make_snapshot())

        text = render_table(session)

        assert "Your turn" in text
        assert "Active: RED" in text
        assert "*1:5/blue" in text
        assert " 2:SKIP/green" in text
        assert "*3:WILD/wild" in text


class TestHandleCommand:

    @pytest.mark.asyncio
    async def test_play_by_position(self):
        session, client = await connected_session()
        await handle_command(session, "join ROOM1")
        await client.push("state:update", make_snapshot())

        assert await handle_command(session, "play 4")
        assert client.intents(INTENT_PLAY_CARD) == [{"cardId": "c4"}]

    @pytest.mark.asyncio
    async def test_wild_then_color(self):
        session, client = await connected_session()
        await handle_command(session, "join ROOM1")
        await client.push("state:update", make_snapshot())

        await handle_command(session, "play 3")
        assert "Choose a color" in render_table(session)
        await handle_command(session, "color BLUE")

        assert client.intents(INTENT_PLAY_CARD) == [{"cardId": "c3", "selectedColor": "blue"}]

    @pytest.mark.asyncio
    async def test_bad_position_ignored(self):
        session, client = await connected_session()
        await handle_command(session, "join ROOM1")
        await client.push("state:update", make_snapshot())

        await handle_command(session, "play x")
        await handle_command(session, "play 99")
        assert client.intents(INTENT_PLAY_CARD) == []

    @pytest.mark.asyncio
    async def test_quit(self):
        session, _ = await connected_session()
        assert not await handle_command(session, "quit")
        assert await handle_command(session, "")


def test_parse_args():
    args = parse_args(["--origin", "http://localhost:4000", "--name", "Bob"])
    assert args.origin == "http://localhost:4000"
    assert args.name == "Bob"
    assert args.page_origin == ""
