import logging

from appaudioswitch.actions.host import ActionHandle
from appaudioswitch.protocol.messages import DeviceState, FocusedProcess, state_label
from appaudioswitch.support.mixins import CommonEqualityMixin, StringerMixin

logger = logging.getLogger(__name__)

NO_DEVICE = "None"
NO_SESSION = "-"


class SelectionError(ValueError):
    """ The device id is not one of the action's devices. """


class ActionSelection(CommonEqualityMixin, StringerMixin):
    """
    The per-action device selection, persisted by the host in the action settings.
    Settings keys this class does not know about are kept and written back unchanged.
    """

    def __init__(self, cur_selected_device_id=None, active_device_ids=(), show_inactive=False, extra=None):
        self.cur_selected_device_id = cur_selected_device_id
        self.active_device_ids = tuple(dict.fromkeys(active_device_ids))
        self.show_inactive = show_inactive
        self.extra = dict(extra or {})

    @classmethod
    def from_settings(cls, settings):
        settings = dict(settings or {})
        selected = settings.pop('curSelectedDeviceId', None)
        active = settings.pop('activeDevices', None) or ()
        show_inactive = bool(settings.pop('showInactive', False))
        return cls(selected, [a for a in active if isinstance(a, str)], show_inactive, settings)

    def to_settings(self):
        settings = dict(self.extra)
        if self.cur_selected_device_id is not None:
            settings['curSelectedDeviceId'] = self.cur_selected_device_id
        settings['activeDevices'] = list(self.active_device_ids)
        settings['showInactive'] = self.show_inactive
        return settings


def filtered_devices(selection: ActionSelection, devices, state_mask=DeviceState.ALL):
    """ the devices chosen for the action that are in one of the states in the mask, in device list order. """
    return [d for d in devices if d.id in selection.active_device_ids and d.in_state(state_mask)]


def current_index(selection: ActionSelection, devices, state_mask=DeviceState.ALL):
    """ index of the selected device in the filtered list, or -1 """
    for i, d in enumerate(filtered_devices(selection, devices, state_mask)):
        if d.id == selection.cur_selected_device_id:
            return i
    return -1


def current_device(selection: ActionSelection, devices):
    """
    The selected device. When nothing valid is selected the first of the action's devices
    stands in. None when the action has no known devices.
    """
    candidates = filtered_devices(selection, devices)
    if not candidates:
        return None
    idx = current_index(selection, devices)
    return candidates[idx if idx >= 0 else 0]


def cycle(selection: ActionSelection, devices, forward=True):
    """
    Moves the selection to the next (or previous) active device, wrapping around.
    Devices that are not active are skipped.
    :return: False if the action has no active devices, in which case the selection is unchanged.
    """
    active = filtered_devices(selection, devices, DeviceState.ACTIVE)
    if not active:
        logger.info("no devices to switch to")
        return False
    idx = current_index(selection, devices, DeviceState.ACTIVE)
    idx += 1 if forward else -1
    if idx < 0:
        idx = len(active) - 1
    elif idx >= len(active):
        idx = 0
    selection.cur_selected_device_id = active[idx].id
    return True


def select_device(selection: ActionSelection, devices, device_id):
    """ raises SelectionError when the device is not one of the action's devices """
    if not any(d.id == device_id for d in filtered_devices(selection, devices)):
        raise SelectionError(device_id)
    selection.cur_selected_device_id = device_id


def try_set_selected(selection: ActionSelection, devices, device_id):
    """ selects the device if it is one of the action's devices, otherwise leaves the selection unchanged. """
    try:
        select_device(selection, devices, device_id)
    except SelectionError:
        logger.debug("device '%s' is not available to the action", device_id)
        return False
    return True


def feedback_value(focus: FocusedProcess, device):
    """ the dial text: the device name, 'None' without a device, or '-' when the process has no audio. """
    if focus is not None and not focus.has_session and not focus.device_id:
        return NO_SESSION
    return device.name if device is not None else NO_DEVICE


def device_options(devices, show_inactive=False):
    """
    The device choices for the property inspector as {value, label} items. Without show_inactive
    only active devices are listed; with it every device is listed and labelled with its state.
    """
    if show_inactive:
        return [{'value': d.id, 'label': "%s - %s" % (d.name, state_label(d.state))} for d in devices]
    return [{'value': d.id, 'label': d.name} for d in devices if d.in_state(DeviceState.ACTIVE)]


class ActionBinding:
    """
    Keeps one visible action in sync with the shared device and focus state.
    The selection lives in the host settings, so it is read before and written after each change.
    """

    def __init__(self, handle: ActionHandle, log=logger):
        self.handle = handle
        self.logger = log

    async def selection(self) -> ActionSelection:
        return ActionSelection.from_settings(await self.handle.get_settings())

    async def _save(self, selection):
        await self.handle.set_settings(selection.to_settings())

    async def cycle(self, devices, forward):
        selection = await self.selection()
        if cycle(selection, devices, forward):
            await self._save(selection)
            return True
        return False

    async def try_set_selected(self, devices, device_id):
        selection = await self.selection()
        if selection.cur_selected_device_id == device_id:
            return True
        if try_set_selected(selection, devices, device_id):
            await self._save(selection)
            return True
        return False

    async def current_device(self, devices):
        return current_device(await self.selection(), devices)

    async def update_feedback(self, focus, devices):
        if not self.handle.is_dial:
            return
        device = await self.current_device(devices)
        await self.handle.set_feedback({'value': feedback_value(focus, device)})

    async def show_focus(self, focus: FocusedProcess, devices):
        """ shows the focused process: the title on every action, and device and icon on dials. """
        await self.handle.set_title(focus.process_name)
        if not self.handle.is_dial:
            return
        if focus.device_id:
            await self.try_set_selected(devices, focus.device_id)
        await self.update_feedback(focus, devices)
        if focus.icon_uri:
            await self.handle.set_feedback({'icon': focus.icon_uri})
