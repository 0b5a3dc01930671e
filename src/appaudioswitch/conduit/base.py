from abc import abstractmethod
from asyncio import StreamReader, StreamWriter


class Conduit:
    """
    A conduit allows two-way communication. It provides an asyncio reader for input and a writer for output.
    """

    @property
    @abstractmethod
    def target(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> StreamReader:
        """ fetches the stream that provides input.
            Callers can await the usual read()/readline() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> StreamWriter:
        """ fetches the stream that takes output.
            Callers write() and then await drain(). """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, the streams provided by
            input and output can be read from/written to."""
        raise NotImplementedError

    @abstractmethod
    async def close(self):
        """
        Closes both the input and output streams, releasing the underlying resource.
        """
        raise NotImplementedError


class DefaultConduit(Conduit):
    """ provides the conduit streams from a given reader and writer. """

    def __init__(self, read=None, write=None):
        self._read = self._write = None
        self.set_streams(read, write)

    def set_streams(self, read, write=None):
        self._read = read
        self._write = write

    @property
    def target(self):
        return None

    async def close(self):
        if self._write is not None:
            self._write.close()

    @property
    def open(self):
        return self._write is None or not self._write.is_closing()

    @property
    def input(self) -> StreamReader:
        return self._read

    @property
    def output(self) -> StreamWriter:
        return self._write
