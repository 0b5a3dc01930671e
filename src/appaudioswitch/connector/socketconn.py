import asyncio
import logging

from appaudioswitch.conduit.base import Conduit
from appaudioswitch.conduit.socket_conduit import SocketConduit
from appaudioswitch.connector.base import AbstractConnector, ConnectError

logger = logging.getLogger(__name__)

LOCALHOST = "127.0.0.1"
WORKER_PORT = 32122
CONNECT_TIMEOUT = 5


class SocketConnector(AbstractConnector):
    """
    A connector that communicates with the worker via a TCP client connection.
    """
    def __init__(self, host=LOCALHOST, port=WORKER_PORT, connect_timeout=CONNECT_TIMEOUT, report_errors=True):
        """
        :param host the address the worker listens on
        :param port the worker control port
        :param connect_timeout seconds to wait for the connection to be accepted
        """
        super().__init__()
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self._report_errors = report_errors

    @property
    def endpoint(self):
        return self.host, self.port

    async def _connect(self) -> Conduit:
        try:
            reader, writer = await asyncio.wait_for(asyncio.open_connection(self.host, self.port),
                                                    self.connect_timeout)
        except (OSError, asyncio.TimeoutError) as e:
            method = logger.warning if self._report_errors else logger.debug
            method("error opening socket to %s:%s: %s", self.host, self.port, e)
            raise ConnectError("unable to connect to %s:%s" % self.endpoint) from e
        logger.info("opened socket to %s:%s", self.host, self.port)
        return SocketConduit(reader, writer)

    async def _disconnect(self, conduit):
        logger.debug("closing socket to %s:%s", self.host, self.port)
