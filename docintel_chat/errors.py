"""Exceptions raised by the chat client."""
from typing import Optional


class DocIntelError(Exception):
    """Base class for all chat client errors."""
    pass


class ConnectionNotOpenError(DocIntelError):
    """Raised when a message is sent while the socket is not open."""
    pass


class TransportError(DocIntelError):
    """Raised when the underlying socket fails."""
    pass


class ChatApiError(DocIntelError):
    """Raised when a REST call to the chat backend fails."""
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)
