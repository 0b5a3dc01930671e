import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, calling, raises

from appaudioswitch.conduit.base import Conduit, DefaultConduit


class ConduitTest(unittest.TestCase):
    def test_abstract_properties(self):
        sut = Conduit()
        assert_that(calling(getattr).with_args(sut, 'target'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'input'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'output'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'open'), raises(NotImplementedError))


class DefaultConduitTest(unittest.IsolatedAsyncioTestCase):
    async def test_streams(self):
        read, write = Mock(), Mock()
        write.is_closing.return_value = False
        sut = DefaultConduit(read, write)
        assert_that(sut.input, is_(read))
        assert_that(sut.output, is_(write))
        assert_that(sut.open, is_(True))
        write.is_closing.return_value = True
        assert_that(sut.open, is_(False))

    async def test_close_closes_writer(self):
        write = Mock()
        sut = DefaultConduit(Mock(), write)
        await sut.close()
        write.close.assert_called_once()

    async def test_read_only(self):
        sut = DefaultConduit(Mock())
        assert_that(sut.output, is_(None))
        assert_that(sut.open, is_(True))
        await sut.close()


if __name__ == '__main__':  # pragma no cover
    unittest.main()
