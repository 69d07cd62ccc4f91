"""Protocol helpers for LG webOS control frames.

The primary socket speaks a JSON envelope ``{id, type, uri, payload}``. The
specialized input socket speaks a plain text block of ``key:value`` lines
terminated by a blank line.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from .errors import ProtocolError

DEFAULT_PORT = 3000
DEFAULT_SSL_PORT = 3001

# Outbound envelope types
MSG_REGISTER = "register"
MSG_REQUEST = "request"
MSG_SUBSCRIBE = "subscribe"

# Inbound envelope types
MSG_RESPONSE = "response"
MSG_REGISTERED = "registered"
MSG_ERROR = "error"

# Service URIs
URI_SYSTEM_INFO = "ssap://system/getSystemInfo"
URI_SOFTWARE_INFO = "ssap://com.webos.service.update/getCurrentSWInformation"
URI_POINTER_INPUT_SOCKET = "ssap://com.webos.service.networkinput/getPointerInputSocket"
URI_INSTALLED_APPS = "ssap://com.webos.applicationManager/listApps"
URI_CHANNEL_LIST = "ssap://tv/getChannelList"
URI_POWER_STATE = "ssap://com.webos.service.tvpower/power/getPowerState"
URI_FOREGROUND_APP = "ssap://com.webos.applicationManager/getForegroundAppInfo"
URI_CURRENT_CHANNEL = "ssap://tv/getCurrentChannel"
URI_AUDIO_STATUS = "ssap://audio/getStatus"
URI_SYSTEM_SETTINGS = "ssap://settings/getSystemSettings"

URI_TURN_OFF = "ssap://system/turnOff"
URI_TURN_OFF_SCREEN = "ssap://com.webos.service.tvpower/power/turnOffScreen"
URI_TURN_ON_SCREEN = "ssap://com.webos.service.tvpower/power/turnOnScreen"
URI_SET_VOLUME = "ssap://audio/setVolume"
URI_VOLUME_UP = "ssap://audio/volumeUp"
URI_VOLUME_DOWN = "ssap://audio/volumeDown"
URI_SET_MUTE = "ssap://audio/setMute"
URI_LAUNCH = "ssap://system.launcher/launch"
URI_OPEN_CHANNEL = "ssap://tv/openChannel"
URI_CHANNEL_UP = "ssap://tv/channelUp"
URI_CHANNEL_DOWN = "ssap://tv/channelDown"
URI_SWITCH_INPUT = "ssap://tv/switchInput"
URI_MEDIA_PLAY = "ssap://media.controls/play"
URI_MEDIA_PAUSE = "ssap://media.controls/pause"
URI_MEDIA_STOP = "ssap://media.controls/stop"
URI_CREATE_TOAST = "ssap://system.notifications/createToast"

PICTURE_SETTINGS_PAYLOAD: dict[str, Any] = {
    "category": "picture",
    "keys": ["brightness", "backlight", "contrast", "color"],
}
SOUND_MODE_PAYLOAD: dict[str, Any] = {
    "category": "sound",
    "keys": ["soundMode"],
}

_PERMISSIONS = [
    "LAUNCH",
    "LAUNCH_WEBAPP",
    "APP_TO_APP",
    "CLOSE",
    "TEST_OPEN",
    "TEST_PROTECTED",
    "CONTROL_AUDIO",
    "CONTROL_DISPLAY",
    "CONTROL_INPUT_JOYSTICK",
    "CONTROL_INPUT_MEDIA_RECORDING",
    "CONTROL_INPUT_MEDIA_PLAYBACK",
    "CONTROL_INPUT_TV",
    "CONTROL_POWER",
    "READ_APP_STATUS",
    "READ_CURRENT_CHANNEL",
    "READ_INPUT_DEVICE_LIST",
    "READ_NETWORK_STATE",
    "READ_INSTALLED_APPS",
    "READ_RUNNING_APPS",
    "READ_TV_CHANNEL_LIST",
    "WRITE_NOTIFICATION",
    "READ_POWER_STATE",
    "READ_COUNTRY_INFO",
    "READ_SETTINGS",
    "CONTROL_TV_SCREEN",
    "CONTROL_TV_STANBY",
    "CONTROL_FAVORITE_GROUP",
    "CONTROL_USER_INFO",
    "CHECK_BLUETOOTH_DEVICE",
    "CONTROL_BLUETOOTH",
    "CONTROL_CAPTION",
    "CONTROL_DEVICE_STORAGE",
    "READ_TV_CONTENT_STATE",
    "READ_TV_CURRENT_TIME",
    "CONTROL_TV_TIMER",
    "CONTROL_MOUSE_AND_KEYBOARD",
    "CONTROL_INPUT_TEXT",
]

_VERSION_RE = re.compile(r"\d+(\.\d+)?")


def build_envelope(
    *,
    msg_id: str,
    msg_type: str,
    uri: str | None = None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a primary-socket envelope.

    ``uri`` and ``payload`` are omitted when not given, matching what the
    device sends for bare requests.
    """
    frame: dict[str, Any] = {"id": msg_id, "type": msg_type}
    if uri is not None:
        frame["uri"] = uri
    if payload is not None:
        frame["payload"] = dict(payload)
    return frame


def build_register_payload(
    client_key: str | None,
    *,
    app_name: str = "lgwebos-core",
) -> dict[str, Any]:
    """Construct the pairing payload sent with the ``register`` frame.

    An empty ``client_key`` asks the device to prompt the user for approval.
    """
    payload: dict[str, Any] = {
        "forcePairing": False,
        "pairingType": "PROMPT",
        "manifest": {
            "manifestVersion": 1,
            "appVersion": "1.1",
            "signed": {
                "created": "20140509",
                "appId": "com.lge.test",
                "vendorId": "com.lge",
                "localizedAppNames": {"": app_name},
                "localizedVendorNames": {"": "LG Electronics"},
                "permissions": list(_PERMISSIONS),
                "serial": "2f930e2d2cfe083771f68e4fe7983211",
            },
            "permissions": list(_PERMISSIONS),
        },
    }
    if client_key:
        payload["client-key"] = client_key
    return payload


def build_button_message(
    msg_type: str, params: Mapping[str, Any] | None = None
) -> str:
    """Encode a specialized-socket command.

    First line is always ``type:<msg_type>``; the block ends with a blank line.
    """
    lines = [f"type:{msg_type}"]
    for key, value in (params or {}).items():
        if isinstance(value, bool):
            value = int(value)
        lines.append(f"{key}:{value}")
    return "\n".join(lines) + "\n\n"


def parse_software_version(product_name: Any) -> float | None:
    """Extract the device software generation from ``product_name``.

    ``"webOSTV 5.0"`` yields ``5.0``. Returns None when no number is present.
    """
    if not isinstance(product_name, str):
        return None
    match = _VERSION_RE.search(product_name)
    if match is None:
        return None
    return float(match.group(0))


def frame_error(frame: Mapping[str, Any], uri: str | None = None) -> ProtocolError | None:
    """Return a ProtocolError when an inbound frame reports failure."""
    payload = frame.get("payload")
    if not isinstance(payload, dict):
        payload = {}

    if frame.get("type") == MSG_ERROR:
        text = frame.get("error") or payload.get("errorText") or "unknown error"
        return ProtocolError(uri, str(text), payload)

    if payload.get("returnValue") is False or "errorCode" in payload:
        text = payload.get("errorText") or payload.get("errorCode") or "unknown error"
        return ProtocolError(uri, str(text), payload)

    return None
