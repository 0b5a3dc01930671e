import asyncio
import logging
from abc import abstractmethod

from appaudioswitch.conduit.base import Conduit
from appaudioswitch.support.events import EventSource
from appaudioswitch.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class LaunchError(ConnectorError):
    """ The worker process could not be started. """


class LaunchTimeoutError(LaunchError):
    """ The worker process did not signal it was ready within the launch timeout. """


class ConnectError(ConnectorError):
    """ The socket connection to the worker could not be established. """


class ExternalCommandError(Exception):
    """ A one-shot invocation of the worker executable failed.

    :param returncode the exit code of the process, or None if it could not be started.
    :param stderr the error output of the process.
    """
    def __init__(self, message, returncode=None, stderr=''):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ConnectorEvent(CommonEqualityMixin):
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        Determines if this connector is connected to its underlying resource.
        :return: True if this connector is connected to it's underlying resource. False otherwise.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def connecting(self) -> bool:
        """ True while a connection attempt is in progress. """
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        If the connection is not connected, raises ConnectionNotConnectedError
        """
        raise NotImplementedError

    @abstractmethod
    async def connect(self):
        """
        Connects this connector to the underlying resource.
        If the connection is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self):
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint.

    Concurrent callers of connect() share a single attempt: the first caller starts it
    and the others await the same outcome, so at most one conduit is ever opened.
    """

    def __init__(self):
        super().__init__()
        self._conduit = None
        self._pending = None    # the in-flight connection attempt

    @property
    def connected(self):
        return self._conduit is not None and self._connected()

    @property
    def connecting(self):
        return self._pending is not None

    async def connect(self):
        if self.connected:
            return

        pending = self._pending
        if pending is None:
            pending = self._pending = asyncio.ensure_future(self._open())
            pending.add_done_callback(self._clear_pending)
        # shield so that a cancelled caller does not abandon the attempt for the others
        try:
            await asyncio.shield(pending)
        except asyncio.CancelledError:
            if pending.cancelled():     # disconnect() called during the attempt
                raise ConnectionNotConnectedError("connection to %s was abandoned" % (self.endpoint,))
            raise

    def _clear_pending(self, future):
        if self._pending is future:
            self._pending = None

    async def _open(self):
        if self._conduit is not None:
            # stale conduit - the resource went away without a disconnect
            await self.disconnect()
        self._conduit = await self._connect()
        self.events.fire(ConnectorConnectedEvent(self))

    async def disconnect(self):
        pending = self._pending
        if pending is not None and pending is not asyncio.current_task():
            pending.cancel()
        conduit = self._conduit
        if conduit is None:
            return
        self._conduit = None
        await self._disconnect(conduit)
        await conduit.close()
        self.events.fire(ConnectorDisconnectedEvent(self))

    @abstractmethod
    async def _connect(self) -> Conduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, a ConnectorError should be raised.
            Subclasses release anything they acquired before raising.
        """
        raise NotImplementedError

    @abstractmethod
    async def _disconnect(self, conduit):
        """ perform any actions needed on disconnection.
        The base class takes care of closing the conduit, which happens
        after this method has been called.
        """
        raise NotImplementedError

    def _connected(self):
        return self._conduit.open

    @property
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        raises ConnectionNotConnectedError if not connected
        """
        self.check_connected()
        return self._conduit

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError
