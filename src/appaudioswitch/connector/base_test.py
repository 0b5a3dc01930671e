import asyncio
import unittest
from unittest.mock import AsyncMock, Mock

from hamcrest import assert_that, is_, raises, calling, instance_of, equal_to, is_not

from appaudioswitch.connector.base import ConnectorEvent, ConnectorConnectedEvent, ConnectorDisconnectedEvent, \
    Connector, AbstractConnector, ConnectorError, ConnectionNotConnectedError, LaunchError, LaunchTimeoutError, \
    ConnectError, ExternalCommandError
from appaudioswitch.support.events import EventSource


class ConnectorEventsTest(unittest.TestCase):

    def test_connector_event(self):
        self.assert_event(ConnectorEvent)
        self.assert_event(ConnectorConnectedEvent)
        self.assert_event(ConnectorDisconnectedEvent)

    def assert_event(self, event_class):
        source = Mock()
        event = event_class(source)
        assert_that(event.connector, is_(source))
        assert_that(event, is_(equal_to(event_class(source))))
        assert_that(event, is_not(equal_to(event_class(Mock()))))
        source.assert_not_called()


class ErrorsTest(unittest.TestCase):
    def test_hierarchy(self):
        assert_that(LaunchTimeoutError(), is_(instance_of(LaunchError)))
        assert_that(LaunchError(), is_(instance_of(ConnectorError)))
        assert_that(ConnectError(), is_(instance_of(ConnectorError)))
        assert_that(ConnectionNotConnectedError(), is_(instance_of(ConnectorError)))

    def test_external_command_error(self):
        e = ExternalCommandError("failed", 2, "bad device")
        assert_that(e.returncode, is_(2))
        assert_that(e.stderr, is_("bad device"))
        assert_that(str(e), is_("failed"))


class ConnectorTest(unittest.TestCase):
    def test_abstract_methods(self):
        sut = Connector()
        assert_that(sut.events, is_(instance_of(EventSource)))
        # property access has to be deferred or it will raise outside the scope of the assert
        assert_that(calling(getattr).with_args(sut, 'endpoint'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'connected'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'connecting'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'conduit'), raises(NotImplementedError))


class StubConnector(AbstractConnector):
    """ opens mock conduits, counting how many were made """

    def __init__(self):
        super().__init__()
        self.opened = []
        self.delay = 0
        self.error = None
        self._disconnect = AsyncMock()

    @property
    def endpoint(self):
        return "test"

    async def _connect(self):
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        conduit = Mock()
        conduit.open = True
        conduit.close = AsyncMock()
        self.opened.append(conduit)
        return conduit


class AbstractConnectorTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.sut = StubConnector()
        self.events = Mock()
        self.sut.events.add(self.events)

    def test_constructor(self):
        sut = StubConnector()
        assert_that(sut._conduit, is_(None))
        assert_that(sut.connected, is_(False))
        assert_that(sut.connecting, is_(False))

    async def test_connect(self):
        await self.sut.connect()
        assert_that(self.sut.connected, is_(True))
        assert_that(self.sut.conduit, is_(self.sut.opened[0]))
        self.events.assert_called_once_with(ConnectorConnectedEvent(self.sut))

    async def test_connect_is_idempotent(self):
        await self.sut.connect()
        await self.sut.connect()
        assert_that(len(self.sut.opened), is_(1))
        self.events.assert_called_once()

    async def test_concurrent_connects_share_one_attempt(self):
        self.sut.delay = 0.01
        await asyncio.gather(self.sut.connect(), self.sut.connect(), self.sut.connect())
        assert_that(len(self.sut.opened), is_(1))
        assert_that(self.sut.connecting, is_(False))

    async def test_connect_error(self):
        self.sut.error = ConnectError("no")
        with self.assertRaises(ConnectError):
            await self.sut.connect()
        assert_that(self.sut.connected, is_(False))
        assert_that(self.sut.connecting, is_(False))
        self.events.assert_not_called()

    async def test_concurrent_connect_error_reaches_all_callers(self):
        self.sut.delay = 0.01
        self.sut.error = ConnectError("no")
        results = await asyncio.gather(self.sut.connect(), self.sut.connect(), return_exceptions=True)
        assert_that(results[0], is_(instance_of(ConnectError)))
        assert_that(results[1], is_(instance_of(ConnectError)))

    async def test_stale_conduit_is_closed_before_reconnect(self):
        await self.sut.connect()
        stale = self.sut.opened[0]
        stale.open = False
        assert_that(self.sut.connected, is_(False))
        await self.sut.connect()
        stale.close.assert_awaited_once()
        assert_that(len(self.sut.opened), is_(2))
        assert_that(self.sut.conduit, is_(self.sut.opened[1]))

    async def test_disconnect(self):
        await self.sut.connect()
        conduit = self.sut.conduit
        self.events.reset_mock()
        await self.sut.disconnect()
        self.sut._disconnect.assert_awaited_once_with(conduit)
        conduit.close.assert_awaited_once()
        assert_that(self.sut._conduit, is_(None))
        self.events.assert_called_once_with(ConnectorDisconnectedEvent(self.sut))

    async def test_disconnect_already_disconnected(self):
        await self.sut.disconnect()
        self.sut._disconnect.assert_not_awaited()
        self.events.assert_not_called()

    async def test_disconnect_while_connecting_abandons_attempt(self):
        self.sut.delay = 10
        connect = asyncio.ensure_future(self.sut.connect())
        await asyncio.sleep(0)
        assert_that(self.sut.connecting, is_(True))
        await self.sut.disconnect()
        with self.assertRaises(ConnectionNotConnectedError):
            await connect
        assert_that(self.sut.connected, is_(False))
        assert_that(self.sut.opened, is_([]))

    def test_conduit_when_not_connected(self):
        assert_that(calling(getattr).with_args(self.sut, 'conduit'), raises(ConnectionNotConnectedError))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
