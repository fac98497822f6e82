"""
Exceptions raised by the sync client.

Transport faults (ClientUnavailableError, ChannelConnectError) reset the
session to a pre-join state. Protocol rejections (MalformedSnapshotError)
leave view and room state intact. Local legality rejections never raise.
"""


class SyncClientError(Exception):
    """Base class for all sync client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientUnavailableError(SyncClientError):
    """The Socket.IO client library could not be loaded."""


class ChannelConnectError(SyncClientError):
    """The connection attempt to the remote origin failed."""


class MalformedSnapshotError(SyncClientError):
    """A server payload failed validation at the transport boundary."""

    def __init__(self, message: str, payload=None):
        super().__init__(message)
        self.payload = payload
