"""
Shared test doubles for the sync client.

FakeSocketClient stands in for socketio.AsyncClient: it records emitted
events, can auto-answer acknowledgements, and lets tests push server
events through the registered handlers.
"""

from typing import Any, Optional


class FakeSocketClient:
    """Mock Socket.IO client that collects emitted events."""

    def __init__(self, sid: str = "me", fail_with: Optional[Exception] = None):
        self.handlers: dict[str, Any] = {}
        self.emitted: list[tuple[str, Optional[dict]]] = []
        self.callbacks: dict[str, Any] = {}
        self.acks: dict[str, Any] = {}
        self.connect_calls: list[tuple] = []
        self.shutdown_calls = 0
        self.connected = False
        self.sid: Optional[str] = None
        self._sid = sid
        self.fail_with = fail_with

    def on(self, event, handler):
        self.handlers[event] = handler

    async def connect(self, url, socketio_path=None, transports=None):
        self.connect_calls.append((url, socketio_path, transports))
        if self.fail_with is not None:
            await self.push("connect_error", {"message": str(self.fail_with)})
            raise self.fail_with
        self.connected = True
        self.sid = self._sid
        await self.push("connect")

    async def emit(self, event, data=None, callback=None):
        self.emitted.append((event, data))
        if callback is not None:
            self.callbacks[event] = callback
            if event in self.acks:
                callback(self.acks[event])

    async def disconnect(self):
        if self.connected:
            self.connected = False
            await self.push("disconnect", "client disconnect")

    async def shutdown(self):
        self.shutdown_calls += 1
        await self.disconnect()

    async def drop(self):
        """Simulate the server going away."""
        self.connected = False
        await self.push("disconnect", "transport close")

    async def push(self, event, *args):
        handler = self.handlers.get(event)
        if handler is not None:
            await handler(*args)

    def intents(self, event: str) -> list:
        return [data for name, data in self.emitted if name == event]

    def emitted_names(self) -> list[str]:
        return [name for name, _ in self.emitted]


class RecordingSender:
    """Async send() replacement that records intents."""

    def __init__(self, result: bool = True):
        self.sent: list[tuple[str, Optional[dict]]] = []
        self.callbacks: list[Any] = []
        self.result = result

    async def __call__(self, event, payload=None, callback=None):
        self.sent.append((event, payload))
        self.callbacks.append(callback)
        return self.result

    def of(self, event: str) -> list:
        return [payload for name, payload in self.sent if name == event]


async def no_warmup(origin, path):
    return None


def card(card_id: str, card_type: str, color: Optional[str] = None) -> dict:
    return {"id": card_id, "type": card_type, "color": color}


def make_snapshot(**overrides) -> dict:
    """A started, in-progress snapshot where it is our turn; override any field."""
    snapshot = {
        "roomId": "ROOM1",
        "meId": "me",
        "turnId": "me",
        "topCard": card("top", "5", "red"),
        "activeColor": "red",
        "yourHand": [
            card("c1", "5", "blue"),
            card("c2", "block", "green"),
            card("c3", "change-color"),
            card("c4", "7", "red"),
        ],
        "opponentCount": 7,
        "deckCount": 80,
        "meReady": True,
        "opponentReady": True,
        "started": True,
        "over": None,
        "meName": "Alice",
        "opponentName": "Bob",
    }
    snapshot.update(overrides)
    return snapshot


def make_lobby_snapshot(**overrides) -> dict:
    """A joined, not-yet-started snapshot."""
    snapshot = make_snapshot(
        started=False,
        turnId=None,
        topCard=None,
        yourHand=[],
        meReady=False,
        opponentReady=False,
        opponentName=None,
    )
    snapshot.update(overrides)
    return snapshot
