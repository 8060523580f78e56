"""Exceptions raised by the session store."""


class SessionStoreError(Exception):
    """Base class for session store errors"""
    pass


class SyncTimeout(SessionStoreError):
    """Raised when the session table is not ready within the configured window."""

    def __init__(self, table_name: str, timeout_ms: int) -> None:
        self.table_name = table_name
        self.timeout_ms = timeout_ms
        super().__init__(
            f"could not sync() the {table_name} table within {timeout_ms}ms"
        )


class CodecError(SessionStoreError):
    """Raised when a session payload cannot be encoded or decoded"""
    pass


class InvalidSession(SessionStoreError):
    """Raised when a decoded session has no cookie metadata"""
    pass
