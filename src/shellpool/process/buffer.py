"""Stream buffer for shell subprocess output."""

from __future__ import annotations

import codecs
import threading


class StreamBuffer:
    """Thread-safe accumulator for one output stream of a shell process.

    A reader thread feeds raw bytes in with ``feed()``; the execution
    engine takes whatever has arrived so far with ``drain()``, which never
    blocks.  Both streams of a process share one ``threading.Condition``
    so a single waiter can be woken by activity on either of them.

    Decoding is incremental: a multi-byte UTF-8 sequence split across two
    reads is held back until it is complete.
    """

    def __init__(self, condition: threading.Condition | None = None) -> None:
        self._chunks: list[str] = []
        self._closed = False
        self._cond = condition or threading.Condition()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def condition(self) -> threading.Condition:
        return self._cond

    def feed(self, data: bytes) -> None:
        """Append raw bytes read from the stream and wake waiters."""
        text = self._decoder.decode(data)
        if not text:
            return
        with self._cond:
            self._chunks.append(text)
            self._cond.notify_all()

    def close(self) -> None:
        """Mark the stream as finished (EOF or read error) and wake waiters."""
        tail = self._decoder.decode(b"", final=True)
        with self._cond:
            if tail:
                self._chunks.append(tail)
            self._closed = True
            self._cond.notify_all()

    def drain(self) -> str:
        """Take all text currently buffered, or ``""`` if none is available."""
        with self._cond:
            text = "".join(self._chunks)
            self._chunks.clear()
        return text

    @property
    def closed(self) -> bool:
        """True once the reader has hit end-of-stream."""
        with self._cond:
            return self._closed
