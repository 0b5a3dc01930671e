import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, equal_to, contains_exactly

from appaudioswitch.protocol.messages import AudioDevice, FocusedProcess
from appaudioswitch.state.store import DeviceFocusStore, DevicesChangedEvent, FocusChangedEvent


class DeviceFocusStoreTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.sut = DeviceFocusStore()
        self.listener = Mock()
        self.sut.events.add(self.listener)

    def focus_events(self):
        return [c[0][0] for c in self.listener.call_args_list if isinstance(c[0][0], FocusChangedEvent)]

    def test_replace_devices(self):
        devices = [AudioDevice("A", "Speakers"), AudioDevice("B", "Headset")]
        self.sut.replace_devices(devices)
        assert_that(self.sut.devices, is_(tuple(devices)))
        assert_that(self.sut.device("B").name, is_("Headset"))
        assert_that(self.sut.device("C"), is_(None))
        assert_that(self.sut.force_pending, is_(False))
        self.listener.assert_called_once_with(DevicesChangedEvent(self.sut))

    async def test_unchanged_focus_after_device_refresh_is_not_pushed(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        self.sut.replace_devices([AudioDevice("A", "Speakers")])
        assert_that(await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True)), is_(False))
        assert_that(len(self.focus_events()), is_(1))

    async def test_first_focus_is_a_change(self):
        focus = FocusedProcess(5, "game.exe", "A", True)
        assert_that(await self.sut.update_focus(focus), is_(True))
        assert_that(self.sut.focus, is_(equal_to(focus)))
        assert_that(self.focus_events(), contains_exactly(FocusChangedEvent(self.sut, None, focus)))

    async def test_unchanged_focus_is_not_pushed(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        assert_that(await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True)), is_(False))
        assert_that(len(self.focus_events()), is_(1))

    async def test_device_or_session_change_is_pushed(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        assert_that(await self.sut.update_focus(FocusedProcess(5, "game.exe", "B", True)), is_(True))
        assert_that(await self.sut.update_focus(FocusedProcess(5, "game.exe", "B", False)), is_(True))
        assert_that(len(self.focus_events()), is_(3))

    async def test_name_only_change_is_not_pushed(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        assert_that(await self.sut.update_focus(FocusedProcess(5, "renamed.exe", "A", True)), is_(False))
        assert_that(self.sut.focus.process_name, is_("game.exe"))

    async def test_process_zero_is_ignored(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        assert_that(await self.sut.update_focus(FocusedProcess(0, "Idle", "", False)), is_(False))
        assert_that(self.sut.focus.process_id, is_(5))

    async def test_icon_retained_for_same_process(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True, "AAA"))
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "B", True))
        assert_that(self.sut.focus.icon_base64, is_("AAA"))
        assert_that(self.focus_events()[-1].focus.icon_base64, is_("AAA"))

    async def test_icon_dropped_for_new_process(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True, "AAA"))
        await self.sut.update_focus(FocusedProcess(6, "chat.exe", "A", True))
        assert_that(self.sut.focus.icon_base64, is_(None))

    async def test_forced_update_applies_unchanged_focus(self):
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        self.sut.force_update()
        assert_that(self.sut.force_pending, is_(True))
        assert_that(await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True)), is_(True))
        assert_that(self.sut.force_pending, is_(False))
        assert_that(await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True)), is_(False))

    async def test_forced_update_applies_process_zero(self):
        self.sut.force_update()
        assert_that(await self.sut.update_focus(FocusedProcess(0, "Idle")), is_(True))

    async def test_async_listeners_are_awaited(self):
        seen = []

        async def listener(event):
            seen.append(event.focus.process_id)

        self.sut.events.add(listener)
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        assert_that(seen, is_([5]))

    async def test_reset(self):
        self.sut.replace_devices([AudioDevice("A", "Speakers")])
        await self.sut.update_focus(FocusedProcess(5, "game.exe", "A", True))
        self.sut.force_update()
        self.sut.reset()
        assert_that(self.sut.devices, is_(()))
        assert_that(self.sut.focus, is_(None))
        assert_that(self.sut.force_pending, is_(False))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
