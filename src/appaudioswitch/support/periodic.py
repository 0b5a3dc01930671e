import asyncio
import logging

logger = logging.getLogger(__name__)


class PeriodicTask:
    """ Runs a coroutine function on the event loop once every period.
        Exceptions raised by the function are logged and the task keeps running.
        The task is cancelled by stop(), which should be called on teardown.
    """

    def __init__(self, fn, period, args=(), log=logger):
        """
        :param fn the coroutine function to run
        :param period seconds between runs. A period of zero or less disables the task.
        :param args arguments to pass to fn
        """
        self.fn = fn
        self.period = period
        self.args = args
        self.logger = log
        self._task = None

    @property
    def running(self):
        return self._task is not None and not self._task.done()

    def start(self):
        """ Schedules the task on the running loop. Calling start() when already running does nothing. """
        if self.period is None or self.period <= 0:
            self.logger.debug("periodic task %s disabled", self.fn)
            return
        if not self.running:
            self._task = asyncio.ensure_future(self._run())

    async def stop(self):
        task = self._task
        self._task = None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def exception_handler(self, e):
        self.logger.exception(e)

    async def _run(self):
        while True:
            await asyncio.sleep(self.period)
            await self._do()

    async def _do(self):
        """ runs the function once and captures any exceptions """
        try:
            await self.fn(*self.args)
        except Exception as e:
            self.exception_handler(e)
