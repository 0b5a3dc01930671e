import asyncio
import logging
from asyncio import subprocess

from appaudioswitch.conduit.base import DefaultConduit

logger = logging.getLogger(__name__)


class ProcessConduit(DefaultConduit):
    """ Provides a conduit to a locally hosted process via its standard output and input. """

    def __init__(self, process, cwd=None):
        """
        process: the asyncio subprocess. Use launch() to start one.
        """
        super().__init__()
        self.process = process
        self.cwd = cwd
        self.set_streams(process.stdout, process.stdin)

    @classmethod
    async def launch(cls, *args, cwd=None):
        """
        args: the process image name and any additional arguments required by the process.
        raises OSError and ValueError
        """
        p = await asyncio.create_subprocess_exec(*args, cwd=cwd, stdout=subprocess.PIPE, stdin=subprocess.PIPE)
        logger.debug("started %s as pid %s", args[0], p.pid)
        return cls(p, cwd)

    @property
    def target(self):
        return self.process

    @property
    def open(self):
        """
        The conduit is considered open if the underlying process is still set and alive.
        """
        return self.process is not None and \
            self.process.returncode is None

    async def wait_for_line(self, marker):
        """
        Reads lines from the process output until one contains the marker.
        :return: the matching line, decoded.
        raises EOFError when the process closes its output first.
        """
        while True:
            try:
                line = await self.input.readline()
            except ValueError:
                logger.debug("skipped overlong process output line")
                continue
            if not line:
                raise EOFError("process output closed before '%s' was seen" % marker)
            text = line.decode('utf-8', errors='replace')
            logger.debug("process output: %s", text.rstrip())
            if marker in text:
                return text

    async def wait_for_exit(self):
        return await self.process.wait()

    async def close(self):
        process = self.process
        if process is not None:
            self.process = None
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass    # exited in the meantime
            await process.wait()
