"""
Types exchanged with the worker and their decoding from the JSON payloads.

Inbound messages have the form ``{"id": <kind>, "payload": {...}}``. The device list arrives
with ``"id": "devices"``; focus updates arrive as ``"focused"`` or ``"icon"``.
"""
import json
from enum import IntEnum, IntFlag

from appaudioswitch.support.mixins import CommonEqualityMixin, StringerMixin

GET_DEVICES = "--get devices"
GET_FOCUSED = "--get focused"
GET_FOCUSED_WITH_ICON = "--get focused --icon"
CLOSE = "close"


class ParseError(ValueError):
    """ An inbound message could not be decoded. """


class DeviceState(IntFlag):
    ACTIVE = 0x1
    DISABLED = 0x2
    NOT_PRESENT = 0x4
    UNPLUGGED = 0x8
    ALL = 0xF


class DataFlow(IntEnum):
    RENDER = 0
    CAPTURE = 1
    ALL = 2


def state_label(state):
    """
    >>> state_label(DeviceState.UNPLUGGED)
    'UNPLUGGED'
    >>> state_label(DeviceState.ACTIVE | DeviceState.DISABLED)
    '3'
    """
    for member in (DeviceState.ACTIVE, DeviceState.DISABLED, DeviceState.NOT_PRESENT, DeviceState.UNPLUGGED):
        if state == member:
            return member.name
    return str(int(state))


def _enum_or_int(enum_type, value):
    """ unknown values from a newer worker are kept rather than rejected. """
    try:
        return enum_type(value)
    except ValueError:
        return value


class AudioDevice(CommonEqualityMixin, StringerMixin):
    """ An audio endpoint known to the worker. Identity is the id. """

    def __init__(self, id, name, state=DeviceState.ACTIVE, flow=DataFlow.RENDER):
        self.id = id
        self.name = name
        self.state = state
        self.flow = flow

    def in_state(self, mask) -> bool:
        return bool(int(self.state) & int(mask))

    @classmethod
    def decode(cls, item):
        try:
            device_id = item['Id']
            name = item['Name']
            state = item['State']
            flow = item.get('Flow', DataFlow.RENDER)
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError("invalid device entry %r" % (item,)) from e
        if not isinstance(device_id, str) or not isinstance(state, int) or not isinstance(flow, int):
            raise ParseError("invalid device entry %r" % (item,))
        return cls(device_id, str(name), _enum_or_int(DeviceState, state), _enum_or_int(DataFlow, flow))


class FocusedProcess(CommonEqualityMixin, StringerMixin):
    """ The process that owns the foreground window, and the device its audio is routed to.
        The icon is only sent by the worker when the focused process changes.
    """

    def __init__(self, process_id, process_name, device_id='', has_session=False, icon_base64=None):
        self.process_id = process_id
        self.process_name = process_name
        self.device_id = device_id
        self.has_session = has_session
        self.icon_base64 = icon_base64

    @property
    def key(self):
        """ the fields that decide whether an update is a change. """
        return self.process_id, self.has_session, self.device_id

    def with_icon_from(self, previous):
        """
        Returns this focus, carrying over the icon of the previous focus when this update
        is for the same process and has no icon of its own.
        """
        if previous is not None and previous.process_id == self.process_id and not self.icon_base64:
            return FocusedProcess(self.process_id, self.process_name, self.device_id, self.has_session,
                                  previous.icon_base64)
        return self

    @property
    def icon_uri(self):
        return "data:image/png;base64," + self.icon_base64 if self.icon_base64 else None

    @classmethod
    def decode(cls, payload):
        try:
            process_id = payload['processId']
            name = payload.get('processName') or ''
            device_id = payload.get('deviceId') or ''
            has_session = bool(payload.get('hasSession', False))
            icon = payload.get('processIconBase64') or None
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError("invalid focus payload %r" % (payload,)) from e
        if not isinstance(process_id, int):
            raise ParseError("invalid process id %r" % (process_id,))
        return cls(process_id, str(name), str(device_id), has_session, icon)


def decode_devices(payload):
    """ decodes the device list of a devices payload. A missing list is an empty list. """
    if not isinstance(payload, dict):
        raise ParseError("invalid devices payload %r" % (payload,))
    items = payload.get('devices') or []
    if not isinstance(items, list):
        raise ParseError("invalid device list %r" % (items,))
    return tuple(AudioDevice.decode(item) for item in items)


def parse_message(raw):
    """
    Parses the text of one message.
    :return: a tuple of the message id and its payload
    raises ParseError
    """
    try:
        message = json.loads(raw)
    except ValueError as e:
        raise ParseError("not json: %r" % raw[:80]) from e
    if not isinstance(message, dict) or not isinstance(message.get('id'), str):
        raise ParseError("not a message: %r" % raw[:80])
    return message['id'], message.get('payload')
