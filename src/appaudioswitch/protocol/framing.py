import codecs
import logging

logger = logging.getLogger(__name__)

MAX_BUFFER = 1024 * 1024


class MessageFramer:
    """
    Splits the text received from the worker into complete JSON objects.

    The worker writes one object per send with no delimiter, so a single read may hold a
    partial object or several concatenated ones. Objects are found by tracking brace depth
    outside string literals; text between objects (whitespace, newlines, stray bytes) is
    dropped. A partial object stays buffered until the rest arrives.

    :param max_buffer the most characters held for an incomplete object before it is discarded.
    """

    def __init__(self, max_buffer=MAX_BUFFER, log=logger):
        self.max_buffer = max_buffer
        self.logger = log
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self._buffer = ''
        self._reset_scan()

    def _reset_scan(self):
        self._pos = 0           # next character to scan
        self._depth = 0
        self._in_string = False
        self._escape = False

    @property
    def pending(self):
        """ the buffered text of an incomplete object """
        return self._buffer

    def feed(self, data: bytes):
        """
        Adds received bytes.
        :return: a list of the complete objects, as text, in the order received.
        """
        self._buffer += self._decoder.decode(data)
        messages = []
        while True:
            message = self._next()
            if message is None:
                break
            messages.append(message)

        if len(self._buffer) > self.max_buffer:
            self.logger.warning("discarding %d characters of incomplete message", len(self._buffer))
            self._buffer = ''
            self._reset_scan()
        return messages

    def _next(self):
        buf = self._buffer
        if self._depth == 0:
            start = buf.find('{')
            if start < 0:
                if buf.strip():
                    self.logger.debug("dropping unframed text %r", buf[:80])
                self._buffer = ''
                self._reset_scan()
                return None
            if start > 0:
                if buf[:start].strip():
                    self.logger.debug("dropping unframed text %r", buf[:start][:80])
                buf = self._buffer = buf[start:]
                self._pos = 0

        pos = self._pos
        depth = self._depth
        in_string = self._in_string
        escape = self._escape
        for pos in range(pos, len(buf)):
            c = buf[pos]
            if in_string:
                if escape:
                    escape = False
                elif c == '\\':
                    escape = True
                elif c == '"':
                    in_string = False
            elif c == '"':
                in_string = True
            elif c == '{':
                depth += 1
            elif c == '}':
                depth -= 1
                if depth == 0:
                    message = buf[:pos + 1]
                    self._buffer = buf[pos + 1:]
                    self._reset_scan()
                    return message

        self._pos = len(buf)
        self._depth = depth
        self._in_string = in_string
        self._escape = escape
        return None
