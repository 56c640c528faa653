"""
Terminal Input and Output

Line input is read by a background daemon thread and handed to the event
loop through an asyncio.Queue, so a blocking read on stdin never stalls
message delivery. Lines typed while a publish is in flight are queued and
handled in order afterwards.

Input is decoded as UTF-8 with the ``surrogateescape`` handler, the same
way inbound records are, so invalid bytes typed by the user are published
unchanged instead of failing the read. Output is written as bytes, which
lets inbound messages be echoed exactly as they were received.
"""

import asyncio
import io
import logging
import sys
import threading
from typing import BinaryIO, Optional, TextIO, Union

logger = logging.getLogger(__name__)

# Marks end of input in the line queue
_EOF = object()


def stdin_text_stream() -> TextIO:
    """Wrap the binary stdin with lossless UTF-8 decoding."""
    return io.TextIOWrapper(
        sys.stdin.buffer, encoding="utf-8", errors="surrogateescape"
    )


def _strip_line_ending(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class TerminalReader:
    """
    Asynchronous line reader over a text stream.

    Attributes:
        stream: The text stream to read from (stdin by default)
        at_eof: True once the stream has been exhausted
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else stdin_text_stream()
        self.at_eof = False
        self._queue: Optional[asyncio.Queue] = None
        self._thread: Optional[threading.Thread] = None

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

        def _read_lines():
            try:
                while True:
                    # readline returns an empty string at end of input
                    line = self.stream.readline()
                    if not line:
                        break
                    loop.call_soon_threadsafe(self._queue.put_nowait, line)
            except (OSError, ValueError) as e:
                logger.error("Error reading terminal input: %s", e)
                loop.call_soon_threadsafe(self._queue.put_nowait, e)
                return
            except RuntimeError:
                # Event loop already closed, nobody is listening
                return
            try:
                loop.call_soon_threadsafe(self._queue.put_nowait, _EOF)
            except RuntimeError:
                pass

        self._thread = threading.Thread(
            target=_read_lines, name="terminal-reader", daemon=True
        )
        self._thread.start()
        logger.debug("Terminal reader thread started")

    async def readline(self) -> Optional[str]:
        """
        Read the next line without its line terminator.

        Returns:
            The line, or None once input is closed

        Raises:
            OSError: If reading the underlying stream failed
        """
        if self.at_eof:
            return None
        if self._queue is None:
            self._start()

        item = await self._queue.get()
        if item is _EOF:
            self.at_eof = True
            logger.info("End of terminal input")
            return None
        if isinstance(item, Exception):
            self.at_eof = True
            raise item
        return _strip_line_ending(item)


class TerminalWriter:
    """
    Byte-oriented writer that flushes after every write.

    Attributes:
        stream: The binary stream to write to (stdout by default)
    """

    def __init__(self, stream: Optional[BinaryIO] = None):
        self.stream = stream if stream is not None else sys.stdout.buffer

    def write(self, data: Union[str, bytes]) -> None:
        """Write text or raw bytes and flush."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.stream.write(data)
        self.stream.flush()
