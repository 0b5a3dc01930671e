import logging

from appaudioswitch.protocol.messages import FocusedProcess, GET_FOCUSED_WITH_ICON, ParseError, decode_devices, \
    parse_message

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Parses messages from the worker and dispatches them by id to the state store.

    Messages that cannot be parsed, and messages with an unknown id, are dropped: the worker
    offers no redelivery so there is nothing to retry. on_message() never raises.

    :param store the DeviceFocusStore receiving device and focus updates
    :param send coroutine function used to send follow-up commands to the worker
    """

    def __init__(self, store, send, log=logger):
        self.store = store
        self.send = send
        self.logger = log
        self.handlers = {
            'devices': self._devices_received,
            'focused': self._focus_received,
            'icon': self._focus_received,
        }

    async def on_message(self, raw):
        self.logger.debug("received message: %s", raw[:200])
        try:
            message_id, payload = parse_message(raw)
        except ParseError as e:
            self.logger.debug("dropped message: %s", e)
            return

        handler = self.handlers.get(message_id)
        if handler is None:
            self.logger.debug("no handler for message '%s'", message_id)
            return

        try:
            await handler(payload)
        except ParseError as e:
            self.logger.debug("dropped '%s' message: %s", message_id, e)
        except Exception as e:
            self.logger.exception("error handling '%s' message: %s", message_id, e)

    async def _devices_received(self, payload):
        devices = decode_devices(payload)
        self.store.replace_devices(devices)
        # device availability feeds into the focus feedback, so refresh focus too
        await self.send(GET_FOCUSED_WITH_ICON)

    async def _focus_received(self, payload):
        await self.store.update_focus(FocusedProcess.decode(payload))
