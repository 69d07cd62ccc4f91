"""High-level session manager for one LG webOS device.

This module owns the primary control socket. It handles:
- Connection management and constant-delay reconnect
- Pairing handshake and pairing key persistence
- Request/subscription correlation
- Device information exchange and the subscription chain
- The specialized input socket for buttons and pointer events
- Folding status notifications into normalized device-state events

Phases:

    DISCONNECTED -> CONNECTING -> REGISTERING -> PAIRED -> SUBSCRIBING -> ACTIVE
                                      |            ^
                                      v            |
                              AWAITING_CONFIRMATION

A close, socket error or failed connect from any phase returns to
DISCONNECTED and schedules the next attempt.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from .channel import SpecializedChannel
from .config import WebOsConfig
from .correlation import CorrelationRegistry, HandlerTag, RequestKind
from .credentials import EMPTY_TOKEN, CredentialStore, is_plausible_token
from .errors import (
    PersistenceWarning,
    ProtocolError,
    RequestTimeout,
    TransportError,
    UnknownVocabulary,
    WebOsClientError,
)
from .events import EventKind, EventSurface
from .protocol import (
    MSG_ERROR,
    MSG_REGISTER,
    MSG_REGISTERED,
    MSG_REQUEST,
    MSG_RESPONSE,
    MSG_SUBSCRIBE,
    URI_CHANNEL_DOWN,
    URI_CHANNEL_UP,
    URI_CREATE_TOAST,
    URI_LAUNCH,
    URI_MEDIA_PAUSE,
    URI_MEDIA_PLAY,
    URI_MEDIA_STOP,
    URI_OPEN_CHANNEL,
    URI_POINTER_INPUT_SOCKET,
    URI_SET_MUTE,
    URI_SET_VOLUME,
    URI_SOFTWARE_INFO,
    URI_SWITCH_INPUT,
    URI_SYSTEM_INFO,
    URI_TURN_OFF,
    URI_TURN_OFF_SCREEN,
    URI_TURN_ON_SCREEN,
    URI_VOLUME_DOWN,
    URI_VOLUME_UP,
    build_envelope,
    build_register_payload,
    frame_error,
    parse_software_version,
)
from .state import (
    DEFAULT_SOFTWARE_VERSION,
    DeviceInfo,
    DeviceState,
    PowerState,
    apply_audio,
    apply_picture_settings,
    apply_power_state,
    apply_sound_mode,
    derive_power_state,
    derive_power_state_with_processing,
    disconnected_state,
    interpret_audio,
    interpret_channel,
    interpret_foreground_app,
    interpret_picture_settings,
    interpret_sound_mode,
    is_known_power_state,
)
from .subscriptions import SubscriptionOrchestrator, SubscriptionSpec
from .ws_client import WebOsWsClient, WebOsWsMessageType

_LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "LG TV"


class SessionPhase(Enum):
    """Primary socket lifecycle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    REGISTERING = "registering"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PAIRED = "paired"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"


async def _cancel_task(task: asyncio.Task[Any] | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


class WebOsSession:
    """Session manager for one webOS device.

    Usage:
        session = WebOsSession(WebOsConfig(host="192.168.1.20", key_file="keys/tv"))
        session.events.subscribe(EventKind.POWER_STATE, on_power)
        await session.connect()
        await session.set_volume(12)
        await session.send_button("HOME")
        await session.close()
    """

    def __init__(
        self,
        config: WebOsConfig,
        *,
        credential_store: CredentialStore | None = None,
        events: EventSurface | None = None,
    ) -> None:
        self.config = config
        self.name = config.name

        self._store = credential_store or CredentialStore(config.key_file)
        self._events = events or EventSurface(config.name)
        self._registry = CorrelationRegistry(request_timeout=config.request_timeout)
        self._channel = SpecializedChannel(
            config.name,
            on_closed=self._on_channel_closed,
            connect_timeout=config.connect_timeout,
        )
        self._orchestrator = SubscriptionOrchestrator(
            self._subscribe_spec,
            device_tag=config.name,
            settle_delay=config.settle_delay,
        )

        # Connection state
        self._ws: WebOsWsClient | None = None
        self._phase = SessionPhase.DISCONNECTED
        self._connected = False
        self._paired = False
        self._pairing_key = EMPTY_TOKEN
        self._software_version = DEFAULT_SOFTWARE_VERSION
        self._register_id: str | None = None
        self._subscription_ids: dict[HandlerTag, str] = {}
        self._shutdown_requested = False

        # Tasks
        self._listen_task: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._setup_task: asyncio.Task[None] | None = None
        self._channel_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._inflight: set[asyncio.Future[dict[str, Any]]] = set()

        # Derived state
        self._device_state = DeviceState()
        self._device_info: DeviceInfo | None = None
        self._prepare_accessory_sent = False

        self._phase_callback: Callable[[SessionPhase], None] | None = None

        self._handlers: dict[HandlerTag, Callable[[dict[str, Any]], None]] = {
            HandlerTag.APPS_LIST: self._handle_apps_list,
            HandlerTag.CHANNEL_LIST: self._handle_channel_list,
            HandlerTag.POWER: self._handle_power_state,
            HandlerTag.FOREGROUND_APP: self._handle_foreground_app,
            HandlerTag.CURRENT_CHANNEL: self._handle_current_channel,
            HandlerTag.AUDIO: self._handle_audio,
            HandlerTag.PICTURE: self._handle_picture_settings,
            HandlerTag.SOUND_MODE: self._handle_sound_mode,
        }

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        """Open the primary socket and start pairing.

        Returns:
            True if the socket opened, False otherwise (a retry is scheduled)
        """
        if self._shutdown_requested:
            _LOGGER.debug("[%s] Connection aborted: shutdown requested", self.name)
            return False
        if self._phase is not SessionPhase.DISCONNECTED:
            return self._connected

        self._set_phase(SessionPhase.CONNECTING)
        self._pairing_key = self._store.read()

        _LOGGER.info("[%s] Connecting to %s", self.name, self.config.url)
        ws_client = WebOsWsClient()
        try:
            await ws_client.connect(self.config.url, timeout=self.config.connect_timeout)
        except TransportError as err:
            _LOGGER.warning("[%s] Connection failed: %s", self.name, err)
            self._handle_disconnect()
            return False

        if self._shutdown_requested:
            await ws_client.close()
            return False

        self._ws = ws_client
        self._connected = True
        self._registry.reset()
        self._listen_task = asyncio.create_task(self._listen(ws_client))
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(ws_client))
        _LOGGER.info("[%s] WebSocket connected, registering", self.name)
        return True

    async def connect_now(self) -> bool:
        """Skip a pending reconnect delay and connect immediately."""
        reconnect_task = self._reconnect_task
        self._reconnect_task = None
        await _cancel_task(reconnect_task)
        return await self.connect()

    async def drop_connection(self) -> None:
        """Close the primary socket; the normal reconnect cycle follows."""
        ws_client = self._ws
        if ws_client is None:
            return
        _LOGGER.info("[%s] Dropping connection", self.name)
        await ws_client.close()

    async def close(self) -> None:
        """Gracefully close the session; no reconnect follows."""
        _LOGGER.info("[%s] Closing session", self.name)
        self._shutdown_requested = True

        for task in (
            self._reconnect_task,
            self._setup_task,
            self._channel_task,
            self._heartbeat_task,
            self._listen_task,
        ):
            await _cancel_task(task)
        self._reconnect_task = None
        self._setup_task = None
        self._channel_task = None
        self._heartbeat_task = None
        self._listen_task = None

        self._registry.clear()
        self._fail_inflight()

        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self._channel.close()

        if self._ws is not None:
            try:
                await asyncio.wait_for(self._ws.close(), timeout=2.0)
            except TimeoutError:
                _LOGGER.warning("[%s] WebSocket close timed out", self.name)
            self._ws = None

        self._connected = False
        self._paired = False
        self._set_phase(SessionPhase.DISCONNECTED)

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_connected(self) -> bool:
        """True while the primary socket is open."""
        return self._connected

    @property
    def is_paired(self) -> bool:
        return self._paired

    @property
    def is_active(self) -> bool:
        return self._phase is SessionPhase.ACTIVE

    @property
    def channel_connected(self) -> bool:
        return self._channel.connected

    @property
    def software_version(self) -> float:
        return self._software_version

    @property
    def device_state(self) -> DeviceState:
        return self._device_state

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._device_info

    @property
    def events(self) -> EventSurface:
        return self._events

    @property
    def subscription_ids(self) -> dict[HandlerTag, str]:
        return dict(self._subscription_ids)

    def on_phase_changed(self, callback: Callable[[SessionPhase], None]) -> None:
        """Register callback for phase transitions."""
        self._phase_callback = callback

    # -------------------------------------------------------------------------
    # Public API: Requests
    # -------------------------------------------------------------------------

    async def request(
        self, uri: str, payload: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a request and wait for its response payload.

        Raises:
            TransportError: If the socket is not connected, breaks on send or
                closes before the response arrives
            RequestTimeout: If the device does not answer in time
            ProtocolError: If the device answers with an error
        """
        ws_client = self._require_socket()
        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        msg_id = self._registry.next_id()

        def _on_frame(frame: dict[str, Any]) -> None:
            if future.done():
                return
            error = frame_error(frame, uri)
            if error is not None:
                future.set_exception(error)
                return
            body = frame.get("payload")
            future.set_result(body if isinstance(body, dict) else {})

        def _on_timeout(err: RequestTimeout) -> None:
            if not future.done():
                future.set_exception(err)

        self._registry.register(
            msg_id,
            RequestKind.REQUEST,
            _on_frame,
            uri=uri,
            on_timeout=_on_timeout,
        )
        self._inflight.add(future)
        try:
            await ws_client.send_json(
                build_envelope(msg_id=msg_id, msg_type=MSG_REQUEST, uri=uri, payload=payload)
            )
            return await future
        finally:
            self._inflight.discard(future)
            self._registry.discard(msg_id)

    async def turn_off(self) -> dict[str, Any]:
        return await self.request(URI_TURN_OFF)

    async def set_volume(self, volume: int) -> dict[str, Any]:
        if not 0 <= volume <= 100:
            raise ValueError(f"volume out of range: {volume}")
        return await self.request(URI_SET_VOLUME, {"volume": volume})

    async def set_mute(self, mute: bool) -> dict[str, Any]:
        return await self.request(URI_SET_MUTE, {"mute": mute})

    async def volume_up(self) -> dict[str, Any]:
        return await self.request(URI_VOLUME_UP)

    async def volume_down(self) -> dict[str, Any]:
        return await self.request(URI_VOLUME_DOWN)

    async def launch_app(
        self, app_id: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": app_id}
        if params:
            payload["params"] = dict(params)
        return await self.request(URI_LAUNCH, payload)

    async def open_channel(self, channel_id: str) -> dict[str, Any]:
        return await self.request(URI_OPEN_CHANNEL, {"channelId": channel_id})

    async def channel_up(self) -> dict[str, Any]:
        return await self.request(URI_CHANNEL_UP)

    async def channel_down(self) -> dict[str, Any]:
        return await self.request(URI_CHANNEL_DOWN)

    async def switch_input(self, input_id: str) -> dict[str, Any]:
        return await self.request(URI_SWITCH_INPUT, {"inputId": input_id})

    async def turn_screen_off(self) -> dict[str, Any]:
        return await self.request(URI_TURN_OFF_SCREEN, {"standbyMode": "active"})

    async def turn_screen_on(self) -> dict[str, Any]:
        return await self.request(URI_TURN_ON_SCREEN, {"standbyMode": "active"})

    async def media_play(self) -> dict[str, Any]:
        return await self.request(URI_MEDIA_PLAY)

    async def media_pause(self) -> dict[str, Any]:
        return await self.request(URI_MEDIA_PAUSE)

    async def media_stop(self) -> dict[str, Any]:
        return await self.request(URI_MEDIA_STOP)

    async def show_toast(self, message: str) -> dict[str, Any]:
        return await self.request(URI_CREATE_TOAST, {"message": message})

    # -------------------------------------------------------------------------
    # Public API: Specialized channel
    # -------------------------------------------------------------------------

    async def send_button(
        self, name: str, params: Mapping[str, Any] | None = None
    ) -> None:
        """Fire-and-forget remote-control button.

        Raises:
            ChannelNotConnected: If the input socket is not open
        """
        await self._channel.send_button(name, params)

    async def move(self, dx: int, dy: int, *, drag: bool = False) -> None:
        await self._channel.move(dx, dy, drag=drag)

    async def click(self) -> None:
        await self._channel.click()

    async def scroll(self, dx: int, dy: int) -> None:
        await self._channel.scroll(dx, dy)

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    def _set_phase(self, phase: SessionPhase) -> None:
        """Update phase and notify callback."""
        if self._phase is phase:
            return
        _LOGGER.debug("[%s] Phase: %s → %s", self.name, self._phase.value, phase.value)
        self._phase = phase
        if self._phase_callback:
            try:
                self._phase_callback(phase)
            except Exception as err:
                _LOGGER.exception("[%s] Phase callback error: %s", self.name, err)

    def _require_socket(self) -> WebOsWsClient:
        if self._ws is None:
            raise TransportError("Socket not connected")
        return self._ws

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _fail_inflight(self) -> None:
        """Release callers still waiting in request() on the closed socket."""
        for future in list(self._inflight):
            if not future.done():
                future.set_exception(TransportError("Socket closed"))
        self._inflight.clear()

    def _handle_disconnect(self) -> None:
        """Drop everything tied to the connection and schedule a reconnect."""
        was_connected = self._connected
        self._ws = None
        self._connected = False
        self._paired = False
        self._register_id = None
        self._subscription_ids.clear()

        dropped = self._registry.clear()
        self._fail_inflight()

        current = asyncio.current_task()
        for task in (
            self._listen_task,
            self._heartbeat_task,
            self._setup_task,
            self._channel_task,
        ):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._listen_task = None
        self._heartbeat_task = None
        self._setup_task = None
        self._channel_task = None

        if self._channel.connected:
            self._track(asyncio.create_task(self._channel.close()))

        self._set_phase(SessionPhase.DISCONNECTED)
        if was_connected:
            _LOGGER.info(
                "[%s] Disconnected (%d pending exchanges dropped)", self.name, dropped
            )
            self._events.publish(EventKind.MESSAGE, "Socket disconnected.")

        self._device_state = disconnected_state(self._device_state)
        self._events.publish(EventKind.POWER_STATE, self._device_state.power)
        self._publish_power_off_batch()

        if not self._prepare_accessory_sent and is_plausible_token(self._pairing_key):
            self._prepare_accessory_sent = True
            self._events.publish(EventKind.PREPARE_ACCESSORY)

        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        """Schedule the next connection attempt after the constant delay."""
        if self._shutdown_requested or self._reconnect_task is not None:
            return

        delay = self.config.reconnect_delay
        _LOGGER.info("[%s] Reconnecting in %.1fs", self.name, delay)
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay(delay))

    async def _reconnect_after_delay(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Reconnect cancelled", self.name)
            return
        self._reconnect_task = None
        await self.connect()

    # -------------------------------------------------------------------------
    # Internal: Message Listener
    # -------------------------------------------------------------------------

    async def _listen(self, ws_client: WebOsWsClient) -> None:
        """Register, then route inbound frames until the socket goes away."""
        message_count = 0
        try:
            await self._send_register(ws_client)

            async for msg in ws_client:
                if msg.type is WebOsWsMessageType.TEXT:
                    message_count += 1
                    try:
                        frame = ws_client.decode_json(msg)
                    except (ValueError, WebOsClientError) as err:
                        _LOGGER.warning("[%s] Invalid message: %s", self.name, err)
                        continue
                    self._dispatch_frame(frame)

                elif msg.type is WebOsWsMessageType.CLOSED:
                    _LOGGER.info("[%s] WebSocket closed by device", self.name)
                    break

                elif msg.type is WebOsWsMessageType.ERROR:
                    _LOGGER.error("[%s] WebSocket error", self.name)
                    break

        except asyncio.CancelledError:
            _LOGGER.debug(
                "[%s] Listener cancelled (%d messages)", self.name, message_count
            )
            raise
        except TransportError as err:
            _LOGGER.warning("[%s] Transport error: %s", self.name, err)
        except Exception as err:
            _LOGGER.exception("[%s] Unexpected error: %s", self.name, err)

        if self._ws is ws_client and not self._shutdown_requested:
            self._handle_disconnect()

    def _dispatch_frame(self, frame: dict[str, Any]) -> None:
        msg_id = frame.get("id")
        msg_type = frame.get("type")
        _LOGGER.debug("[%s] Frame type=%s id=%s", self.name, msg_type, msg_id)

        if msg_id is None:
            _LOGGER.debug("[%s] Frame without id ignored", self.name)
            return

        try:
            handled = self._registry.resolve(str(msg_id), frame)
        except Exception as err:
            _LOGGER.exception("[%s] Handler error for id=%s: %s", self.name, msg_id, err)
            return

        if not handled:
            _LOGGER.debug(
                "[%s] No waiter for frame type=%s id=%s", self.name, msg_type, msg_id
            )

    # -------------------------------------------------------------------------
    # Internal: Pairing
    # -------------------------------------------------------------------------

    async def _send_register(self, ws_client: WebOsWsClient) -> None:
        self._set_phase(SessionPhase.REGISTERING)

        msg_id = self._registry.next_id()
        self._register_id = msg_id
        self._registry.register(
            msg_id,
            RequestKind.REGISTER,
            self._handle_register_frame,
            tag=HandlerTag.REGISTER,
            uri=MSG_REGISTER,
        )

        frame = build_envelope(
            msg_id=msg_id,
            msg_type=MSG_REGISTER,
            payload=build_register_payload(
                self._pairing_key, app_name=self.config.client_name
            ),
        )
        await ws_client.send_json(frame)
        _LOGGER.debug(
            "[%s] Register sent (%s key)",
            self.name,
            "stored" if self._pairing_key else "no",
        )

    def _handle_register_frame(self, frame: dict[str, Any]) -> None:
        msg_type = frame.get("type")
        payload = frame.get("payload")
        if not isinstance(payload, dict):
            payload = {}

        if msg_type == MSG_ERROR:
            error = frame_error(frame, MSG_REGISTER)
            _LOGGER.error("[%s] Registration rejected: %s", self.name, error)
            self._events.publish(EventKind.ERROR, error)
            return

        client_key = payload.get("client-key")
        if client_key and msg_type in (MSG_RESPONSE, MSG_REGISTERED):
            if self._register_id is not None:
                self._registry.discard(self._register_id)
            self._on_paired(str(client_key))
        elif msg_type == MSG_RESPONSE:
            self._set_phase(SessionPhase.AWAITING_CONFIRMATION)
            _LOGGER.info("[%s] Waiting for pairing confirmation on the device", self.name)
            self._events.publish(EventKind.MESSAGE, "Please accept authorization on TV.")
        else:
            _LOGGER.warning(
                "[%s] Unexpected register reply type=%s without key", self.name, msg_type
            )

    def _on_paired(self, client_key: str) -> None:
        if self._paired:
            return

        if client_key != self._pairing_key:
            try:
                self._store.write(client_key)
            except PersistenceWarning as err:
                _LOGGER.warning("[%s] %s", self.name, err)
                self._events.publish(EventKind.ERROR, err)
            else:
                self._events.publish(EventKind.MESSAGE, "Pairing key saved.")
            self._pairing_key = client_key

        self._paired = True
        self._register_id = None
        self._set_phase(SessionPhase.PAIRED)
        _LOGGER.info("[%s] Paired", self.name)
        self._events.publish(EventKind.MESSAGE, "Connected.")
        self._setup_task = asyncio.create_task(self._run_setup())

    # -------------------------------------------------------------------------
    # Internal: Setup chain
    # -------------------------------------------------------------------------

    async def _run_setup(self) -> None:
        """Device info, then the input socket, then the subscription chain."""
        try:
            await self._request_device_info()
            self._channel_task = asyncio.create_task(self._open_channel())

            self._set_phase(SessionPhase.SUBSCRIBING)
            result = await self._orchestrator.run(self._software_version)
            self._subscription_ids = dict(result.installed)
            self._set_phase(SessionPhase.ACTIVE)
            _LOGGER.info(
                "[%s] Session active (webOS %.1f)", self.name, self._software_version
            )
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Setup cancelled", self.name)
            raise
        except TransportError as err:
            _LOGGER.warning("[%s] Setup interrupted: %s", self.name, err)

    async def _request_device_info(self) -> None:
        model_name = DEFAULT_MODEL_NAME
        try:
            system_info = await self.request(URI_SYSTEM_INFO)
        except (ProtocolError, RequestTimeout) as err:
            _LOGGER.warning("[%s] System info error: %s", self.name, err)
            self._events.publish(EventKind.ERROR, err)
        else:
            model_name = system_info.get("modelName") or DEFAULT_MODEL_NAME

        try:
            software_info = await self.request(URI_SOFTWARE_INFO)
        except (ProtocolError, RequestTimeout) as err:
            _LOGGER.warning("[%s] Software info error: %s", self.name, err)
            self._events.publish(EventKind.ERROR, err)
            return

        product_name = software_info.get("product_name")
        version = parse_software_version(product_name)
        if version is None:
            error = ProtocolError(
                URI_SOFTWARE_INFO, f"Unknown webOS system: {product_name}", software_info
            )
            _LOGGER.warning("[%s] %s", self.name, error)
            self._events.publish(EventKind.ERROR, error)
        else:
            self._software_version = version

        major = software_info.get("major_ver")
        minor = software_info.get("minor_ver")
        firmware = f"{major}.{minor}" if major is not None else None

        self._device_info = DeviceInfo(
            model_name=model_name,
            product_name=product_name,
            device_id=software_info.get("device_id"),
            firmware_revision=firmware,
            software_version=self._software_version,
        )
        _LOGGER.info(
            "[%s] Device: %s, %s, firmware %s",
            self.name,
            model_name,
            product_name,
            firmware,
        )
        self._events.publish(EventKind.DEVICE_INFO, self._device_info)

    async def _open_channel(self) -> None:
        try:
            payload = await self.request(URI_POINTER_INPUT_SOCKET)
        except WebOsClientError as err:
            _LOGGER.warning("[%s] Specialized socket request error: %s", self.name, err)
            self._events.publish(EventKind.ERROR, err)
            return

        socket_path = payload.get("socketPath")
        if not socket_path:
            error = ProtocolError(URI_POINTER_INPUT_SOCKET, "No socketPath in response", payload)
            _LOGGER.warning("[%s] %s", self.name, error)
            self._events.publish(EventKind.ERROR, error)
            return

        try:
            await self._channel.open(str(socket_path))
        except TransportError as err:
            _LOGGER.warning("[%s] Specialized socket connect failed: %s", self.name, err)
            self._events.publish(EventKind.ERROR, err)
            return

        self._events.publish(EventKind.MESSAGE, "Specialized socket connected.")

    def _on_channel_closed(self) -> None:
        self._events.publish(EventKind.MESSAGE, "Specialized socket disconnected.")

    async def _subscribe_spec(self, spec: SubscriptionSpec) -> str:
        """Install a subscription handler and send the subscribe frame."""
        ws_client = self._require_socket()
        msg_id = self._registry.next_id()
        self._registry.register(
            msg_id,
            RequestKind.SUBSCRIBE,
            self._subscription_handler(spec.tag, spec.uri),
            tag=spec.tag,
            uri=spec.uri,
        )
        try:
            await ws_client.send_json(
                build_envelope(
                    msg_id=msg_id,
                    msg_type=MSG_SUBSCRIBE,
                    uri=spec.uri,
                    payload=spec.payload,
                )
            )
        except TransportError:
            self._registry.discard(msg_id)
            raise
        return msg_id

    def _subscription_handler(
        self, tag: HandlerTag, uri: str
    ) -> Callable[[dict[str, Any]], None]:
        handler = self._handlers[tag]

        def _on_frame(frame: dict[str, Any]) -> None:
            error = frame_error(frame, uri)
            if error is not None:
                _LOGGER.error("[%s] %s error: %s", self.name, tag.value, error.error_text)
                self._events.publish(EventKind.ERROR, error)
                return
            payload = frame.get("payload")
            handler(payload if isinstance(payload, dict) else {})

        return _on_frame

    # -------------------------------------------------------------------------
    # Internal: Notification handlers
    # -------------------------------------------------------------------------

    def _handle_apps_list(self, payload: dict[str, Any]) -> None:
        apps = payload.get("apps") or []
        _LOGGER.debug("[%s] Apps list: %d entries", self.name, len(apps))
        self._events.publish(EventKind.APPS_LIST, apps)
        if not self._prepare_accessory_sent:
            self._prepare_accessory_sent = True
            self._events.publish(EventKind.PREPARE_ACCESSORY)

    def _handle_channel_list(self, payload: dict[str, Any]) -> None:
        channels = payload.get("channelList") or []
        _LOGGER.debug("[%s] Channel list: %d entries", self.name, len(channels))
        self._events.publish(EventKind.CHANNEL_LIST, channels)

    def _handle_power_state(self, payload: dict[str, Any]) -> None:
        derive = (
            derive_power_state_with_processing
            if self.config.use_processing_hints
            else derive_power_state
        )
        try:
            power = derive(
                payload,
                software_version=self._software_version,
                connected=self._connected,
            )
        except UnknownVocabulary as err:
            _LOGGER.warning("[%s] %s", self.name, err)
            self._events.publish(EventKind.MESSAGE, f"Unknown power state: {err.value}")
            return

        if not is_known_power_state(power.raw_state):
            self._events.publish(
                EventKind.MESSAGE, f"Unknown power state: {power.raw_state}"
            )

        _LOGGER.debug(
            "[%s] Power: %s (raw %s)",
            self.name,
            "ON" if power.power else "OFF",
            power.raw_state,
        )
        self._apply_power(power)

    def _apply_power(self, power: PowerState) -> None:
        self._device_state = apply_power_state(self._device_state, power)
        self._events.publish(EventKind.POWER_STATE, power)
        if not power.power:
            self._publish_power_off_batch()

    def _publish_power_off_batch(self) -> None:
        """Follow-up events forced by a power-off projection."""
        self._events.publish(EventKind.AUDIO_STATE, self._device_state.audio)
        self._events.publish(EventKind.PICTURE_SETTINGS, self._device_state.picture)
        self._events.publish(EventKind.SOUND_MODE, self._device_state.sound_mode)

    def _handle_foreground_app(self, payload: dict[str, Any]) -> None:
        app_id = interpret_foreground_app(payload)
        if app_id is None:
            _LOGGER.debug("[%s] Foreground app without appId", self.name)
            return
        self._device_state = dataclasses.replace(self._device_state, current_app=app_id)
        self._events.publish(EventKind.CURRENT_APP, app_id)

    def _handle_current_channel(self, payload: dict[str, Any]) -> None:
        channel = interpret_channel(payload)
        self._device_state = dataclasses.replace(self._device_state, channel=channel)
        self._events.publish(EventKind.CURRENT_CHANNEL, channel)

    def _handle_audio(self, payload: dict[str, Any]) -> None:
        self._device_state = apply_audio(self._device_state, interpret_audio(payload))
        self._events.publish(EventKind.AUDIO_STATE, self._device_state.audio)

    def _handle_picture_settings(self, payload: dict[str, Any]) -> None:
        self._device_state = apply_picture_settings(
            self._device_state, interpret_picture_settings(payload)
        )
        self._events.publish(EventKind.PICTURE_SETTINGS, self._device_state.picture)

    def _handle_sound_mode(self, payload: dict[str, Any]) -> None:
        self._device_state = apply_sound_mode(
            self._device_state, interpret_sound_mode(payload)
        )
        self._events.publish(EventKind.SOUND_MODE, self._device_state.sound_mode)

    # -------------------------------------------------------------------------
    # Internal: Heartbeat
    # -------------------------------------------------------------------------

    async def _heartbeat_loop(self, ws_client: WebOsWsClient) -> None:
        """Ping while paired. A missing pong is not treated as a disconnect."""
        try:
            while not self._shutdown_requested and self._ws is ws_client:
                await asyncio.sleep(self.config.heartbeat_interval)
                if self._ws is not ws_client:
                    break
                if not self._paired:
                    continue
                try:
                    await ws_client.ping()
                    _LOGGER.debug("[%s] Heartbeat sent", self.name)
                except TransportError as err:
                    _LOGGER.debug("[%s] Heartbeat failed: %s", self.name, err)
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Heartbeat cancelled", self.name)
