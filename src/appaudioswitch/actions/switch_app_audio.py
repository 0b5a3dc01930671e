import logging
from collections import OrderedDict

from appaudioswitch.actions.binding import ActionBinding, device_options
from appaudioswitch.actions.host import ActionHandle, PropertyInspector
from appaudioswitch.connector.base import ConnectorError, ExternalCommandError
from appaudioswitch.protocol.messages import GET_DEVICES
from appaudioswitch.session import Session
from appaudioswitch.state.store import FocusChangedEvent

logger = logging.getLogger(__name__)

DEVICE_OPTIONS_EVENT = "getProducts"


class SwitchAppAudioAction:
    """
    Switches the audio device of the focused application.

    The host calls one of the on_xxx() methods for each event on any visible instance of the action.
    The first instance to appear brings up the shared session; the session is torn down when
    the last instance disappears. Exceptions from the session never reach the host: failures are
    logged and the action is left as it was.

    :param session the Session shared by all instances
    :param inspector where device options for the property inspector are sent
    """

    def __init__(self, session: Session, inspector: PropertyInspector = None, log=logger):
        self.session = session
        self.store = session.store
        self.inspector = inspector
        self.logger = log
        self._bindings = OrderedDict()
        self.store.events.add(self._store_events)

    @property
    def actions(self):
        """ the visible instances """
        return tuple(b.handle for b in self._bindings.values())

    def _binding(self, action: ActionHandle) -> ActionBinding:
        binding = self._bindings.get(action.id)
        return binding if binding is not None else ActionBinding(action)

    async def _store_events(self, event):
        if isinstance(event, FocusChangedEvent):
            devices = self.store.devices
            for binding in list(self._bindings.values()):
                try:
                    await binding.show_focus(event.focus, devices)
                except Exception as e:
                    self.logger.exception("unable to update action %s: %s", binding.handle.id, e)

    async def on_appear(self, action: ActionHandle):
        self._bindings[action.id] = ActionBinding(action)
        try:
            await self.session.ensure_connected()
        except ConnectorError as e:
            self.logger.error("unable to reach the audio worker: %s", e)
            return
        self.session.start_polling()
        # the new instance needs the current focus even if it has not changed
        self.store.force_update()
        await self.session.send(GET_DEVICES)

    async def on_disappear(self, action: ActionHandle):
        self._bindings.pop(action.id, None)
        if not self._bindings:
            await self.session.terminate()

    async def on_settings_changed(self, action: ActionHandle, settings=None):
        binding = self._binding(action)
        await binding.update_feedback(self.store.focus, self.store.devices)
        await self._send_device_options(binding)

    async def on_key_press(self, action: ActionHandle):
        await self.session.send(GET_DEVICES)

    async def on_dial_rotate(self, action: ActionHandle, ticks):
        binding = self._binding(action)
        await binding.cycle(self.store.devices, ticks > 0)
        await binding.update_feedback(self.store.focus, self.store.devices)

    async def on_dial_press(self, action: ActionHandle):
        device = await self._binding(action).current_device(self.store.devices)
        focus = self.store.focus
        if device is None or focus is None:
            self.logger.info("no device or focused process to switch")
            return
        try:
            await self.session.switch_app_device(focus.process_id, device.id)
        except ExternalCommandError as e:
            self.logger.error("unable to switch %s to %s: %s %s", focus.process_name, device.name, e, e.stderr)

    async def on_inspector_request(self, action: ActionHandle, payload):
        if isinstance(payload, dict) and payload.get('event') == DEVICE_OPTIONS_EVENT:
            await self._send_device_options(self._binding(action))

    async def _send_device_options(self, binding):
        if self.inspector is None:
            return
        selection = await binding.selection()
        await self.inspector.send({
            'event': DEVICE_OPTIONS_EVENT,
            'items': device_options(self.store.devices, selection.show_inactive),
        })
