import asyncio
import logging
from enum import Enum

from appaudioswitch.config.config import Settings
from appaudioswitch.connector.base import ConnectorError
from appaudioswitch.connector.processconn import ProcessConnector, run_command
from appaudioswitch.connector.socketconn import SocketConnector
from appaudioswitch.protocol.framing import MAX_BUFFER, MessageFramer
from appaudioswitch.protocol.messages import CLOSE, GET_FOCUSED
from appaudioswitch.protocol.router import MessageRouter
from appaudioswitch.state.store import DeviceFocusStore
from appaudioswitch.support.periodic import PeriodicTask

logger = logging.getLogger(__name__)

SERVER_ARG = "--server"


class ConnectionState(Enum):
    UNBOUND = 'unbound'
    CONNECTING = 'connecting'
    READY = 'ready'
    DISCONNECTED = 'disconnected'


class Session:
    """
    The single link between the plugin and the worker: the worker process, one socket connection
    to it, and the state reported over that connection. All actions share one Session.

    ensure_connected() may be called by any number of actions at once; they share one launch and
    one connection attempt. terminate() tears everything down, and a later ensure_connected()
    brings it up again.

    :param supervisor the ProcessConnector that runs the worker
    :param socket the SocketConnector for the worker control port
    :param store the DeviceFocusStore updated from worker messages
    """

    def __init__(self, supervisor: ProcessConnector, socket: SocketConnector, store: DeviceFocusStore = None,
                 update_process_interval=1.0, max_buffer=MAX_BUFFER, read_size=65536, log=logger):
        self.supervisor = supervisor
        self.socket = socket
        self.store = store if store is not None else DeviceFocusStore()
        self.router = MessageRouter(self.store, self.send)
        self.focus_poll = PeriodicTask(self._poll_focus, update_process_interval)
        self.max_buffer = max_buffer
        self.read_size = read_size
        self.logger = log
        self._bound = False
        self._bring_up = None   # the in-flight ensure_connected() attempt
        self._bring_up_launches = False
        self._reader = None

    @classmethod
    def from_settings(cls, settings: Settings, directory=None, store=None):
        worker = settings.worker
        supervisor = ProcessConnector(settings.resolve_executable(directory), [SERVER_ARG],
                                      ready_marker=worker.ready_marker, launch_timeout=worker.launch_timeout)
        socket = SocketConnector(worker.host, worker.port, worker.connect_timeout)
        return cls(supervisor, socket, store, settings.session.update_process_interval,
                   settings.session.max_buffer, settings.session.read_size)

    @property
    def connected(self):
        return self.supervisor.connected and self.socket.connected

    @property
    def state(self) -> ConnectionState:
        if not self._bound:
            return ConnectionState.UNBOUND
        if self.connected:
            return ConnectionState.READY
        if self._bring_up is not None:
            return ConnectionState.CONNECTING
        return ConnectionState.DISCONNECTED

    async def ensure_started(self, restart=False):
        """ starts the worker process if it is not running. raises LaunchError """
        await self.supervisor.ensure_started(restart)

    async def ensure_connected(self, skip_launch=False):
        """
        Makes sure the worker is running and connected.
        :param skip_launch: when True the worker is not started, only the connection is made.
        raises LaunchError or ConnectError
        """
        self._bound = True
        while not self.connected:
            pending = self._bring_up
            if pending is None:
                pending = self._bring_up = asyncio.ensure_future(self._connect(skip_launch))
                self._bring_up_launches = not skip_launch
                pending.add_done_callback(self._bring_up_done)
            elif not skip_launch and not self._bring_up_launches:
                # the attempt in flight only reconnects, so launch once it is over
                try:
                    await self._join(pending)
                except ConnectorError as e:
                    if not self._bound:
                        raise
                    self.logger.debug("reconnect failed, launching the worker: %s", e)
                continue
            await self._join(pending)
            return

    async def _join(self, pending):
        try:
            await asyncio.shield(pending)
        except asyncio.CancelledError:
            if pending.cancelled():     # terminated while connecting
                raise ConnectorError("session terminated while connecting")
            raise

    def _bring_up_done(self, future):
        if self._bring_up is future:
            self._bring_up = None

    async def _connect(self, skip_launch):
        if not skip_launch:
            await self.supervisor.ensure_started()
        await self._drop_connection()
        try:
            await self.socket.connect()
        except ConnectorError:
            await self.supervisor.terminate()
            raise
        self._reader = asyncio.ensure_future(self._read(self.socket.conduit))

    async def _read(self, conduit):
        """ forwards each message from the worker to the router until the connection closes. """
        framer = MessageFramer(self.max_buffer)
        try:
            while True:
                data = await conduit.input.read(self.read_size)
                if not data:
                    break
                for message in framer.feed(data):
                    await self.router.on_message(message)
        except OSError as e:
            self.logger.warning("error reading from worker: %s", e)
        self.logger.info("connection to worker closed")
        if self.socket.connected and self.socket.conduit is conduit:
            await self._drop_connection()

    async def _drop_connection(self):
        reader = self._reader
        self._reader = None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
        await self.socket.disconnect()

    async def send(self, command):
        """
        Sends a command to the worker, reconnecting if needed but never starting the worker.
        :return: True if the command was written. Failures are logged, not raised.
        """
        if not self._bound:
            self.logger.debug("session closed, dropping command '%s'", command)
            return False
        try:
            await self.ensure_connected(skip_launch=True)
        except ConnectorError as e:
            self.logger.warning("not connected, dropping command '%s': %s", command, e)
            return False
        return await self._write(command)

    async def _write(self, command):
        if not self.socket.connected:
            self.logger.warning("not connected, dropping command '%s'", command)
            return False
        self.logger.debug("sending '%s'", command)
        output = self.socket.conduit.output
        try:
            output.write(command.encode('utf-8'))
            await output.drain()
        except OSError as e:
            self.logger.warning("error sending '%s': %s", command, e)
            await self._drop_connection()
            return False
        return True

    def start_polling(self):
        self.focus_poll.start()

    async def _poll_focus(self):
        # the poll must not bring back a worker that was stopped or crashed
        if self.supervisor.connected:
            await self.send(GET_FOCUSED)

    async def switch_app_device(self, process_id, device_id):
        """
        Routes the audio of a process to a device by running the worker once.
        raises ExternalCommandError
        """
        self.logger.info("moving process %s to device %s", process_id, device_id)
        return await run_command(self.supervisor.image, '--set', 'appDevice', '--process', str(process_id),
                                 '--device', device_id, cwd=self.supervisor.cwd)

    async def terminate(self):
        """
        Stops polling, asks the worker to close, and closes the connection and the process.
        Safe to call when nothing is running.
        """
        self._bound = False
        pending = self._bring_up
        if pending is not None:
            pending.cancel()
        await self.focus_poll.stop()
        if self.socket.connected:
            await self._write(CLOSE)
        await self._drop_connection()
        await self.supervisor.terminate()
        self.store.reset()
        self.logger.info("session closed")
