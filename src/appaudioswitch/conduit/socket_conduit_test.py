import unittest
from unittest.mock import AsyncMock, Mock

from hamcrest import assert_that, is_

from appaudioswitch.conduit.socket_conduit import SocketConduit


def mock_writer(closing=False):
    writer = Mock()
    writer.is_closing.return_value = closing
    writer.wait_closed = AsyncMock()
    writer.get_extra_info.return_value = ('127.0.0.1', 32122)
    return writer


class SocketConduitTest(unittest.IsolatedAsyncioTestCase):

    async def test_streams(self):
        reader = Mock()
        writer = mock_writer()
        sut = SocketConduit(reader, writer)
        assert_that(sut.input, is_(reader))
        assert_that(sut.output, is_(writer))
        assert_that(sut.target, is_(('127.0.0.1', 32122)))
        writer.get_extra_info.assert_called_once_with('peername')

    async def test_open_until_closing(self):
        writer = mock_writer()
        sut = SocketConduit(Mock(), writer)
        assert_that(sut.open, is_(True))
        writer.is_closing.return_value = True
        assert_that(sut.open, is_(False))

    async def test_close(self):
        writer = mock_writer()
        sut = SocketConduit(Mock(), writer)
        await sut.close()
        writer.close.assert_called_once()
        writer.wait_closed.assert_awaited_once()

    async def test_close_peer_already_gone(self):
        writer = mock_writer()
        writer.wait_closed.side_effect = ConnectionResetError()
        sut = SocketConduit(Mock(), writer)
        await sut.close()
        writer.close.assert_called_once()


if __name__ == '__main__':  # pragma no cover
    unittest.main()
