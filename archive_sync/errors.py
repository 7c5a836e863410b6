"""
Errors raised by the archive sync client.
"""


class StorageError(RuntimeError):
    """Object store transfer or local digest I/O failed."""


class NotificationError(RuntimeError):
    """Completion webhook could not be delivered."""
