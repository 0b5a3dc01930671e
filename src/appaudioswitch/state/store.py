import logging

from appaudioswitch.protocol.messages import FocusedProcess
from appaudioswitch.support.events import EventSource
from appaudioswitch.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class StoreEvent(CommonEqualityMixin):
    """ base class for store events. """
    def __init__(self, store):
        self.store = store


class DevicesChangedEvent(StoreEvent):
    """ The device list was replaced. """


class FocusChangedEvent(StoreEvent):
    """ The focused process changed in a way that should be shown on the bound actions.

    :param previous the focus before the update, or None
    :param focus the stored focus, with the icon carried over where applicable
    """
    def __init__(self, store, previous, focus):
        super().__init__(store)
        self.previous = previous
        self.focus = focus


class DeviceFocusStore:
    """
    Holds the last device list and the last focused process reported by the worker.

    Listeners on ``events`` receive DevicesChangedEvent and FocusChangedEvent. Focus listeners may
    be coroutine functions; update_focus() awaits them before returning.
    """

    def __init__(self, log=logger):
        self.events = EventSource()
        self.logger = log
        self._devices = ()
        self._focus = None
        self._force = False

    @property
    def devices(self):
        return self._devices

    @property
    def focus(self) -> FocusedProcess:
        return self._focus

    @property
    def force_pending(self):
        return self._force

    def device(self, device_id):
        for d in self._devices:
            if d.id == device_id:
                return d
        return None

    def replace_devices(self, devices):
        """ replaces the whole device list. Pushes nothing to the actions and forces no focus update. """
        self._devices = tuple(devices)
        self.logger.info("%d audio devices", len(self._devices))
        self.events.fire(DevicesChangedEvent(self))

    def force_update(self):
        """ the next focus update is applied even when it matches the stored focus. """
        self._force = True

    def is_change(self, focus: FocusedProcess):
        """
        An update is a change when the process, session or device differs from the stored focus
        and the process id is not zero, or when an update has been forced.
        """
        if self._force:
            return True
        previous = self._focus
        differs = previous is None or focus.key != previous.key
        return differs and focus.process_id != 0

    async def update_focus(self, focus: FocusedProcess):
        """
        Stores the focus if it is a change and notifies listeners.
        :return: True if the focus was stored.
        """
        if not self.is_change(focus):
            return False
        previous = self._focus
        self._focus = focus.with_icon_from(previous)
        self._force = False
        self.logger.debug("focus: %s (pid %s) device '%s'", focus.process_name, focus.process_id,
                          focus.device_id)
        await self.events.fire_async(FocusChangedEvent(self, previous, self._focus))
        return True

    def reset(self):
        self._devices = ()
        self._focus = None
        self._force = False
