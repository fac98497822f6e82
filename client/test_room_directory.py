"""
Test suite for the room directory.

Covers:
- Room list replacement
- Create/join correlation by acknowledgement and by result event
- Timeouts, abandoned requests and late acknowledgements

Run with: pytest test_room_directory.py -v
"""

import asyncio

import pytest

from conftest import RecordingSender
from constants import (
    INTENT_CREATE_ROOM,
    INTENT_JOIN_ROOM,
    INTENT_LIST_ROOMS,
    INTENT_SET_PLAYER_DATA,
    MSG_ACK_TIMEOUT,
)
from room_directory import RoomDirectory


class AckingSender(RecordingSender):
    """Answers every request with a fixed acknowledgement."""

    def __init__(self, ack):
        super().__init__()
        self.ack = ack

    async def __call__(self, event, payload=None, callback=None):
        await super().__call__(event, payload, callback)
        if callback is not None:
            callback(self.ack)
        return True


async def settle():
    for _ in range(3):
        await asyncio.sleep(0)


# =============================================================================
# Room list
# =============================================================================

class TestRoomList:

    @pytest.mark.asyncio
    async def test_request_list(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender)
        assert await directory.request_list()
        assert sender.sent == [(INTENT_LIST_ROOMS, None)]

    def test_list_replaced_wholesale(self):
        directory = RoomDirectory(RecordingSender())
        directory.on_list({"rooms": [{"roomId": "A"}, {"roomId": "B"}]})
        directory.on_update({"rooms": [{"roomId": "C", "playersCount": 1}]})
        assert [r.room_id for r in directory.rooms] == ["C"]
        assert directory.find("C").players_count == 1
        assert directory.find("A") is None

    def test_empty_list(self):
        directory = RoomDirectory(RecordingSender())
        directory.on_list({"rooms": [{"roomId": "A"}]})
        directory.on_update({"rooms": []})
        assert directory.rooms == []

    def test_malformed_list_is_empty(self):
        directory = RoomDirectory(RecordingSender())
        directory.on_list({"rooms": [{"roomId": "A"}]})
        directory.on_list(None)
        assert directory.rooms == []


# =============================================================================
# Create / join
# =============================================================================

class TestCreateJoin:

    @pytest.mark.asyncio
    async def test_create_by_ack(self):
        sender = AckingSender({"gameId": "AB12"})
        directory = RoomDirectory(sender)

        result = await directory.create("Alice")

        assert result.ok
        assert result.room_id == "AB12"
        assert directory.active_room_id == "AB12"
        assert directory.joined
        assert sender.of(INTENT_CREATE_ROOM) == [{"playerName": "Alice"}]
        assert directory.pending is None

    @pytest.mark.asyncio
    async def test_join_by_result_event(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender, ack_timeout=1.0)

        task = asyncio.create_task(directory.join("AB12", "Bob"))
        await settle()
        assert directory.pending is not None
        directory.on_join_result({"ok": True, "roomId": "AB12"})
        result = await task

        assert result.ok
        assert directory.active_room_id == "AB12"
        assert sender.of(INTENT_JOIN_ROOM) == [{"gameId": "AB12", "playerName": "Bob"}]

    @pytest.mark.asyncio
    async def test_join_success_without_room_id_uses_requested_room(self):
        directory = RoomDirectory(AckingSender({"ok": True}))
        result = await directory.join(" AB12 ", "Bob")
        assert result.room_id == "AB12"
        assert directory.active_room_id == "AB12"

    @pytest.mark.asyncio
    async def test_join_failure_keeps_server_error(self):
        directory = RoomDirectory(AckingSender({"ok": False, "error": "Room is full"}))
        result = await directory.join("AB12", "Bob")
        assert not result.ok
        assert result.error == "Room is full"
        assert not directory.joined

    @pytest.mark.asyncio
    async def test_join_failure_fallback_message(self):
        directory = RoomDirectory(AckingSender({"ok": False}))
        result = await directory.join("AB12", "Bob")
        assert result.error == "Failed to join"

    @pytest.mark.asyncio
    async def test_empty_room_code(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender)
        result = await directory.join("   ", "Bob")
        assert not result.ok
        assert result.error == "Enter a room code"
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_not_connected(self):
        directory = RoomDirectory(RecordingSender(result=False))
        result = await directory.create("Alice")
        assert not result.ok
        assert result.error == "Not connected"
        assert directory.pending is None

    @pytest.mark.asyncio
    async def test_timeout_then_late_ack_ignored(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender, ack_timeout=0.01)

        result = await directory.create("Alice")
        assert not result.ok
        assert result.error == MSG_ACK_TIMEOUT

        sender.callbacks[-1]({"gameId": "LATE"})
        assert not directory.joined

    @pytest.mark.asyncio
    async def test_double_request_shares_outstanding_one(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender, ack_timeout=1.0)

        first = asyncio.create_task(directory.create("Alice"))
        await settle()
        second = asyncio.create_task(directory.create("Alice"))
        await settle()
        sender.callbacks[0]({"gameId": "AB12"})

        assert (await first) == (await second)
        assert len(sender.of(INTENT_CREATE_ROOM)) == 1

    @pytest.mark.asyncio
    async def test_create_result_ignored_during_join(self):
        directory = RoomDirectory(RecordingSender(), ack_timeout=1.0)

        task = asyncio.create_task(directory.join("AB12", "Bob"))
        await settle()
        directory.on_create_result({"ok": True, "roomId": "OTHER"})
        assert not directory.joined

        directory.on_join_result({"ok": True, "roomId": "AB12"})
        assert (await task).room_id == "AB12"

    def test_join_result_without_request_ignored(self):
        directory = RoomDirectory(RecordingSender())
        directory.on_join_result({"ok": True, "roomId": "AB12"})
        assert not directory.joined


# =============================================================================
# Membership
# =============================================================================

class TestMembership:

    @pytest.mark.asyncio
    async def test_set_display_name(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender)
        await directory.set_display_name("Carol")
        assert sender.of(INTENT_SET_PLAYER_DATA) == [{"playerName": "Carol"}]

    @pytest.mark.asyncio
    async def test_clear_active_abandons_pending_request(self):
        sender = RecordingSender()
        directory = RoomDirectory(sender, ack_timeout=1.0)

        task = asyncio.create_task(directory.join("AB12", "Bob"))
        await settle()
        directory.clear_active()
        result = await task

        assert not result.ok
        sender.callbacks[-1]({"ok": True, "roomId": "AB12"})
        assert not directory.joined
        assert directory.epoch == 1

    @pytest.mark.asyncio
    async def test_clear_active_leaves_room(self):
        directory = RoomDirectory(AckingSender({"gameId": "AB12"}))
        await directory.create("Alice")
        directory.clear_active()
        assert directory.active_room_id is None

    def test_reset_drops_rooms(self):
        directory = RoomDirectory(RecordingSender())
        directory.on_list({"rooms": [{"roomId": "A"}]})
        directory.reset()
        assert directory.rooms == []
        assert not directory.joined
