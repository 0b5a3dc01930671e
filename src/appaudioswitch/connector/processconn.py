import asyncio
import logging
from asyncio import subprocess

from appaudioswitch.conduit.base import Conduit
from appaudioswitch.conduit.process_conduit import ProcessConduit
from appaudioswitch.connector.base import AbstractConnector, ExternalCommandError, LaunchError, \
    LaunchTimeoutError

logger = logging.getLogger(__name__)

READY_MARKER = "Listening on port"
LAUNCH_TIMEOUT = 5


class ProcessConnector(AbstractConnector):
    """ Starts the worker process and waits for it to report that it is ready.

    The process is considered connected once a line containing the ready marker
    has been read from its standard output. The rest of the output is drained in the
    background; when the process exits the connector disconnects itself.

    :param image the worker executable
    :param args arguments passed to the worker
    :param ready_marker text the worker writes to stdout once it accepts connections
    :param launch_timeout seconds to wait for the ready marker
    """

    def __init__(self, image, args=None, cwd=None, ready_marker=READY_MARKER, launch_timeout=LAUNCH_TIMEOUT,
                 log=logger):
        super().__init__()
        self.image = image
        self.args = args
        self.cwd = cwd
        self.ready_marker = ready_marker
        self.launch_timeout = launch_timeout
        self.logger = log
        self._drain = None

    @property
    def endpoint(self):
        return self.image

    @property
    def process(self):
        return self._conduit.target if self._conduit is not None else None

    async def ensure_started(self, restart=False):
        """
        Starts the worker unless it is already running.
        :param restart: when True, any running instance is terminated first.
        raises LaunchError
        """
        if restart:
            await self.terminate()
        await self.connect()

    async def terminate(self):
        """ kills the worker if it is running. Does nothing otherwise. """
        await self.disconnect()

    async def _connect(self) -> Conduit:
        args = self.args if self.args is not None else []
        try:
            conduit = await ProcessConduit.launch(self.image, *args, cwd=self.cwd)
        except (OSError, ValueError) as e:
            self.logger.error("unable to start worker %s: %s", self.image, e)
            raise LaunchError("unable to start %s" % self.image) from e

        ready = False
        try:
            await asyncio.wait_for(conduit.wait_for_line(self.ready_marker), self.launch_timeout)
            ready = True
        except asyncio.TimeoutError as e:
            self.logger.error("worker %s not ready after %ss", self.image, self.launch_timeout)
            raise LaunchTimeoutError("%s did not start within %ss" % (self.image, self.launch_timeout)) from e
        except EOFError as e:
            raise LaunchError("%s exited during startup" % self.image) from e
        finally:
            if not ready:
                await conduit.close()

        self.logger.info("worker started: %s (pid %s)", self.image, conduit.target.pid)
        self._drain = asyncio.ensure_future(self._drain_output(conduit))
        return conduit

    async def _drain_output(self, conduit):
        """ reads the remaining worker output until the worker exits. """
        while True:
            try:
                line = await conduit.input.readline()
            except ValueError:
                self.logger.debug("discarded overlong worker output line")
                continue
            if not line:
                break
            self.logger.debug("worker: %s", line.decode('utf-8', errors='replace').rstrip())
        code = await conduit.wait_for_exit()
        self.logger.warning("worker %s exited with code %s", self.image, code)
        if self._conduit is conduit:
            await self.disconnect()

    async def _disconnect(self, conduit):
        drain = self._drain
        self._drain = None
        if drain is not None and drain is not asyncio.current_task():
            drain.cancel()
        self.logger.info("stopping worker %s", self.image)


async def run_command(image, *args, cwd=None):
    """
    Runs the executable once and waits for it to finish.
    :return: the standard output of the process
    raises ExternalCommandError when the process cannot be started or exits with a non-zero code.
    """
    try:
        p = await asyncio.create_subprocess_exec(image, *args, cwd=cwd,
                                                 stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except (OSError, ValueError) as e:
        raise ExternalCommandError("unable to run %s: %s" % (image, e)) from e
    out, err = await p.communicate()
    stderr = err.decode('utf-8', errors='replace') if err else ''
    if p.returncode != 0:
        raise ExternalCommandError("%s exited with code %s" % (image, p.returncode), p.returncode, stderr)
    return out.decode('utf-8', errors='replace') if out else ''
