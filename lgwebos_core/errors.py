"""Client error types for LG webOS device interactions."""

from __future__ import annotations

from typing import Any


class WebOsClientError(Exception):
    """Base error for webOS client failures."""


class TransportError(WebOsClientError):
    """Network connection to the device failed or the socket broke."""


class WebOsTimeout(TransportError):
    """Timeout while opening a connection to the device."""


class WebOsHandshakeError(TransportError):
    """WebSocket handshake failed."""


class ChannelNotConnected(TransportError):
    """The specialized input socket is not open."""


class RequestTimeout(WebOsClientError):
    """No response arrived for a request within the request window."""

    def __init__(self, msg_id: str, uri: str | None = None) -> None:
        super().__init__(f"No response for {uri or 'request'} (id={msg_id})")
        self.msg_id = msg_id
        self.uri = uri


class ProtocolError(WebOsClientError):
    """Device answered a request or subscription with an error."""

    def __init__(
        self,
        uri: str | None,
        error_text: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"{uri or 'request'} failed: {error_text}")
        self.uri = uri
        self.error_text = error_text
        self.payload = payload or {}


class PersistenceWarning(WebOsClientError):
    """Pairing key could not be written; pairing continues in memory."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Pairing key save error ({path}): {message}")
        self.path = path


class UnknownVocabulary(WebOsClientError):
    """Device reported a status string outside the known vocabulary."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"Unknown {field}: {value}")
        self.field = field
        self.value = value
