import inspect


class EventSource(object):
    """
    A list of handlers that are called with each event fired.
    Handlers may be plain callables or coroutine functions. fire() calls them all and
    returns any awaitables they produced; fire_async() calls them in order and awaits each one.
    """

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        """
        Calls each handler. Awaitables returned by coroutine handlers are not awaited here,
        they are returned so the caller can schedule them.
        """
        pending = []
        for handler in self.handlers():
            result = handler(*args, **kwargs)
            if inspect.isawaitable(result):
                pending.append(result)
        return pending

    async def fire_async(self, *args, **kwargs):
        """ calls each handler in turn, awaiting coroutine handlers before moving to the next. """
        for handler in self.handlers():
            result = handler(*args, **kwargs)
            if inspect.isawaitable(result):
                await result

    def fire_all(self, events):
        for e in events:
            self.fire(e)
