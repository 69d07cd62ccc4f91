"""Persistent control-channel client for LG webOS devices."""

__version__ = "0.1.0"

from .channel import SpecializedChannel
from .config import WebOsConfig, load_config
from .correlation import CorrelationRegistry, HandlerTag, RequestKind
from .credentials import CredentialStore
from .errors import (
    ChannelNotConnected,
    PersistenceWarning,
    ProtocolError,
    RequestTimeout,
    TransportError,
    UnknownVocabulary,
    WebOsClientError,
    WebOsHandshakeError,
    WebOsTimeout,
)
from .events import (
    BufferSink,
    CallbackSink,
    DeviceEvent,
    EventKind,
    EventSink,
    EventSurface,
    NullSink,
)
from .protocol import build_envelope, build_register_payload
from .reachability import ReachabilityMonitor, WebOsHttpProbe
from .session import SessionPhase, WebOsSession
from .state import (
    AudioState,
    ChannelState,
    DeviceInfo,
    DeviceState,
    PictureSettings,
    PowerState,
    derive_power_state,
)
from .subscriptions import SubscriptionOrchestrator
from .ws import connect_websocket
from .ws_client import WebOsWsClient, WebOsWsMessage, WebOsWsMessageType

__all__ = [
    "AudioState",
    "BufferSink",
    "CallbackSink",
    "ChannelNotConnected",
    "ChannelState",
    "CorrelationRegistry",
    "CredentialStore",
    "DeviceEvent",
    "DeviceInfo",
    "DeviceState",
    "EventKind",
    "EventSink",
    "EventSurface",
    "HandlerTag",
    "NullSink",
    "PersistenceWarning",
    "PictureSettings",
    "PowerState",
    "ProtocolError",
    "ReachabilityMonitor",
    "RequestKind",
    "RequestTimeout",
    "SessionPhase",
    "SpecializedChannel",
    "SubscriptionOrchestrator",
    "TransportError",
    "UnknownVocabulary",
    "WebOsClientError",
    "WebOsConfig",
    "WebOsHandshakeError",
    "WebOsHttpProbe",
    "WebOsSession",
    "WebOsTimeout",
    "WebOsWsClient",
    "WebOsWsMessage",
    "WebOsWsMessageType",
    "__version__",
    "build_envelope",
    "build_register_payload",
    "connect_websocket",
    "derive_power_state",
    "load_config",
]
