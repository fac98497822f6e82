"""
Wire-level names for the UNO Classic Socket.IO protocol.

This module is the single source of truth for event and intent names,
card colors, and the host-frame message tag. Every other module refers
to these constants rather than to string literals.
"""

# =============================================================================
# Intents (client -> server)
# =============================================================================

INTENT_LIST_ROOMS = "rooms:list"
INTENT_CREATE_ROOM = "CreateGame"
INTENT_JOIN_ROOM = "JoinGame"
INTENT_LEAVE_ROOM = "LeaveGame"
INTENT_SET_PLAYER_DATA = "SetPlayerData"
INTENT_TOGGLE_READY = "ToggleReady"
INTENT_START_GAME = "game:start"
INTENT_PLAY_CARD = "game:play"
INTENT_DRAW_CARD = "game:draw"


# =============================================================================
# Events (server -> client)
# =============================================================================

EVENT_CONNECT = "connect"
EVENT_CONNECT_ERROR = "connect_error"
EVENT_DISCONNECT = "disconnect"
EVENT_ROOM_LIST_RESULT = "rooms:list:result"
EVENT_ROOM_LIST_UPDATE = "rooms:update"
EVENT_JOIN_RESULT = "room:join:result"
EVENT_CREATE_RESULT = "room:create:result"
EVENT_GAME_ERROR = "game:error"
EVENT_STATE_UPDATE = "state:update"

# Transitions owned by the transport itself; passed through unmodified.
TRANSPORT_EVENTS = (EVENT_CONNECT, EVENT_CONNECT_ERROR, EVENT_DISCONNECT)

SERVER_EVENTS = (
    EVENT_ROOM_LIST_RESULT,
    EVENT_ROOM_LIST_UPDATE,
    EVENT_JOIN_RESULT,
    EVENT_CREATE_RESULT,
    EVENT_GAME_ERROR,
    EVENT_STATE_UPDATE,
)


# =============================================================================
# Transport
# =============================================================================

SOCKET_TRANSPORTS = ["websocket", "polling"]

# Hosts a server binds to but a browser cannot route to.
BIND_ALL_HOSTS = ("0.0.0.0", "::", "[::]")


# =============================================================================
# Game
# =============================================================================

HOST_MESSAGE_SOURCE = "gameverse_uno"
HOST_EVENT_GAME_END = "game_end"


# =============================================================================
# Displayable error messages
# =============================================================================

MSG_CLIENT_UNAVAILABLE = "Socket client failed to load"
MSG_CONNECT_FAILED = "Failed to connect"
MSG_JOIN_FAILED = "Failed to join"
MSG_CREATE_FAILED = "Failed to create room"
MSG_GAME_ERROR = "Game error"
MSG_ACK_TIMEOUT = "Server did not respond"
MSG_MALFORMED_SNAPSHOT = "Received an invalid game state"
