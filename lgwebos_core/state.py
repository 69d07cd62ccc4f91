"""Device state derived from raw webOS status payloads.

Everything here is a pure function of its inputs. The session feeds each
subscription payload through the matching interpreter and folds the result
into a DeviceState projection.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import UnknownVocabulary

_LOGGER = logging.getLogger(__name__)

DEFAULT_SOFTWARE_VERSION = 2.0
# Firmware below this generation reports meaningless power state strings.
STATE_REPORTING_VERSION = 3.0
PICTURE_MODE = 3

STATE_ACTIVE = "Active"
STATE_ACTIVE_STANDBY = "Active Standby"
STATE_SCREEN_SAVER = "Screen Saver"
STATE_SCREEN_OFF = "Screen Off"
STATE_SUSPEND = "Suspend"

PROCESSING_SCREEN_ON = "Screen On"
PROCESSING_REQUEST_SCREEN_SAVER = "Request Screen Saver"
PROCESSING_REQUEST_POWER_OFF = "Request Power Off"
PROCESSING_REQUEST_SUSPEND = "Request Suspend"
PROCESSING_PREPARE_SUSPEND = "Prepare Suspend"
PROCESSING_REQUEST_ACTIVE_STANDBY = "Request Active Standby"

KNOWN_PROCESSING = frozenset(
    {
        PROCESSING_SCREEN_ON,
        PROCESSING_REQUEST_SCREEN_SAVER,
        PROCESSING_REQUEST_POWER_OFF,
        PROCESSING_REQUEST_SUSPEND,
        PROCESSING_PREPARE_SUSPEND,
        PROCESSING_REQUEST_ACTIVE_STANDBY,
    }
)

# state -> (power, screen_state, pixel_refresh)
POWER_STATE_TABLE: dict[str, tuple[bool, bool, bool]] = {
    STATE_ACTIVE: (True, True, False),
    STATE_SCREEN_SAVER: (True, True, False),
    STATE_SCREEN_OFF: (True, False, False),
    STATE_ACTIVE_STANDBY: (False, False, True),
    STATE_SUSPEND: (False, False, False),
}

_POWER_DOWN_REQUESTS = frozenset(
    {
        PROCESSING_REQUEST_POWER_OFF,
        PROCESSING_REQUEST_SUSPEND,
        PROCESSING_PREPARE_SUSPEND,
    }
)


@dataclass(frozen=True)
class PowerState:
    """Normalized power facts."""

    power: bool = False
    pixel_refresh: bool = False
    screen_state: bool = False
    raw_state: str | None = None


@dataclass(frozen=True)
class AudioState:
    """Volume is None when unknown (device off or not reported)."""

    volume: int | None = None
    mute: bool = True
    audio_output: str | None = None


@dataclass(frozen=True)
class ChannelState:
    channel_id: str | None = None
    name: str | None = None
    number: str | None = None


@dataclass(frozen=True)
class PictureSettings:
    brightness: int = 0
    backlight: int = 0
    contrast: int = 0
    color: int = 0
    mode: int = PICTURE_MODE


@dataclass(frozen=True)
class DeviceInfo:
    model_name: str
    product_name: str | None
    device_id: str | None
    firmware_revision: str | None
    software_version: float


@dataclass(frozen=True)
class DeviceState:
    """Latest projection of everything the subscriptions report."""

    power: PowerState = field(default_factory=PowerState)
    audio: AudioState = field(default_factory=AudioState)
    current_app: str | None = None
    channel: ChannelState | None = None
    picture: PictureSettings = field(default_factory=PictureSettings)
    sound_mode: str | None = None


POWER_OFF_AUDIO = AudioState(volume=None, mute=True, audio_output=None)
POWER_OFF_PICTURE = PictureSettings()


def is_known_power_state(state: Any) -> bool:
    return isinstance(state, str) and state in POWER_STATE_TABLE


def derive_power_state(
    payload: Mapping[str, Any],
    *,
    software_version: float,
    connected: bool,
) -> PowerState:
    """Map a power-state payload onto (power, pixel_refresh, screen_state).

    On firmware older than STATE_REPORTING_VERSION power follows socket
    connectivity and the screen facts default to off. An unknown ``state``
    there is only logged, since it does not feed the result.

    Raises:
        UnknownVocabulary: If ``state`` is outside the known vocabulary
    """
    raw_state = payload.get("state")

    if software_version < STATE_REPORTING_VERSION:
        if not is_known_power_state(raw_state):
            _LOGGER.warning("Unknown power state: %s", raw_state)
        return PowerState(power=connected, raw_state=raw_state)

    try:
        power, screen_state, pixel_refresh = POWER_STATE_TABLE[raw_state]
    except (KeyError, TypeError) as err:
        raise UnknownVocabulary("power state", raw_state) from err

    return PowerState(
        power=power,
        pixel_refresh=pixel_refresh,
        screen_state=screen_state,
        raw_state=raw_state,
    )


def derive_power_state_with_processing(
    payload: Mapping[str, Any],
    *,
    software_version: float,
    connected: bool,
) -> PowerState:
    """Derive power facts honoring the in-flight ``processing`` hint.

    Pending power-down requests read as off before the state changes, and a
    pending active-standby reads as pixel refresh. ``Screen On`` never
    overrides ``Suspend`` or ``Active Standby``.

    Raises:
        UnknownVocabulary: If ``state`` is outside the known vocabulary
    """
    state = payload.get("state")
    processing = payload.get("processing") or ""

    if not is_known_power_state(state):
        if software_version >= STATE_REPORTING_VERSION:
            raise UnknownVocabulary("power state", state)
        _LOGGER.warning("Unknown power state: %s", state)
    if processing and processing not in KNOWN_PROCESSING:
        _LOGGER.warning("Unknown power processing value: %s", processing)
        processing = ""

    screen_on_requested = processing == PROCESSING_SCREEN_ON

    prepare_screen_on = screen_on_requested and state in (
        STATE_SUSPEND,
        STATE_SCREEN_SAVER,
        STATE_ACTIVE_STANDBY,
    )
    power_on_screen_off = state == STATE_SCREEN_OFF
    screen_on = state == STATE_ACTIVE
    prepare_screen_saver = (
        state == STATE_ACTIVE and processing == PROCESSING_REQUEST_SCREEN_SAVER
    )
    screen_saver = state == STATE_SCREEN_SAVER

    prepare_screen_off = processing in _POWER_DOWN_REQUESTS and state in (
        STATE_ACTIVE,
        STATE_SCREEN_SAVER,
        STATE_ACTIVE_STANDBY,
    )
    screen_off = state == STATE_SUSPEND

    prepare_pixel_refresh = processing == PROCESSING_REQUEST_ACTIVE_STANDBY and state in (
        STATE_ACTIVE,
        STATE_SCREEN_SAVER,
    )
    pixel_refresh = prepare_pixel_refresh or state == STATE_ACTIVE_STANDBY

    power_on = (
        prepare_screen_on
        or power_on_screen_off
        or screen_on
        or prepare_screen_saver
        or screen_saver
    )
    power_off = prepare_screen_off or screen_off or pixel_refresh

    if software_version >= STATE_REPORTING_VERSION:
        power = power_on and not power_off
    else:
        power = connected
    screen_state = not power_on_screen_off if power else False

    return PowerState(
        power=power,
        pixel_refresh=pixel_refresh,
        screen_state=screen_state,
        raw_state=state,
    )


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def interpret_audio(payload: Mapping[str, Any]) -> AudioState:
    """Normalize an audio status payload.

    Newer firmware nests volume, mute and output under ``volumeStatus``.
    """
    nested = payload.get("volumeStatus")
    if not isinstance(nested, Mapping):
        nested = {}

    volume_raw = payload.get("volume", nested.get("volume"))
    volume = None if volume_raw is None else min(max(_as_int(volume_raw), 0), 100)

    mute_raw = payload.get("mute", payload.get("muted", nested.get("muteStatus")))
    mute = bool(mute_raw) if mute_raw is not None else False

    audio_output = payload.get("scenario") or nested.get("soundOutput")

    return AudioState(volume=volume, mute=mute, audio_output=audio_output)


def interpret_foreground_app(payload: Mapping[str, Any]) -> str | None:
    app_id = payload.get("appId")
    return app_id or None


def interpret_channel(payload: Mapping[str, Any]) -> ChannelState:
    number = payload.get("channelNumber")
    return ChannelState(
        channel_id=payload.get("channelId"),
        name=payload.get("channelName"),
        number=None if number is None else str(number),
    )


def interpret_picture_settings(payload: Mapping[str, Any]) -> PictureSettings:
    """Normalize a picture settings payload (values may arrive as strings)."""
    settings = payload.get("settings")
    if not isinstance(settings, Mapping):
        settings = {}
    return PictureSettings(
        brightness=_as_int(settings.get("brightness")),
        backlight=_as_int(settings.get("backlight")),
        contrast=_as_int(settings.get("contrast")),
        color=_as_int(settings.get("color")),
    )


def interpret_sound_mode(payload: Mapping[str, Any]) -> str | None:
    settings = payload.get("settings")
    if not isinstance(settings, Mapping):
        return None
    return settings.get("soundMode")


def apply_power_state(state: DeviceState, power: PowerState) -> DeviceState:
    """Fold a power update into the projection.

    Power off replaces audio, picture and sound facts with the off projection
    so no stale "on" values survive.
    """
    if power.power:
        return dataclasses.replace(state, power=power)
    return dataclasses.replace(
        state,
        power=power,
        audio=POWER_OFF_AUDIO,
        picture=POWER_OFF_PICTURE,
        sound_mode=None,
    )


def apply_audio(state: DeviceState, audio: AudioState) -> DeviceState:
    if not state.power.power:
        audio = dataclasses.replace(audio, mute=True)
    return dataclasses.replace(state, audio=audio)


def apply_picture_settings(state: DeviceState, picture: PictureSettings) -> DeviceState:
    if not state.power.power:
        picture = POWER_OFF_PICTURE
    return dataclasses.replace(state, picture=picture)


def apply_sound_mode(state: DeviceState, sound_mode: str | None) -> DeviceState:
    if not state.power.power:
        sound_mode = None
    return dataclasses.replace(state, sound_mode=sound_mode)


def disconnected_state(previous: DeviceState | None = None) -> DeviceState:
    """Projection published when the primary socket goes away.

    App and channel facts are kept so the UI can show the last selection.
    """
    base = previous or DeviceState()
    return apply_power_state(base, PowerState(raw_state=None))
