from asyncio import StreamReader, StreamWriter

from appaudioswitch.conduit import base


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a connected stream socket.
    """
    def __init__(self, reader: StreamReader, writer: StreamWriter):
        """
        :param reader: the reader half of the connection
        :param writer: the writer half of the connection
        """
        self.read = reader
        self.write = writer

    @property
    def open(self) -> bool:
        return not self.write.is_closing()

    @property
    def target(self):
        return self.write.get_extra_info('peername')

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    async def close(self):
        self.write.close()
        try:
            await self.write.wait_closed()
        except OSError:
            pass    # the peer may have closed the socket already
