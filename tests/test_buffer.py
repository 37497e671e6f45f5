"""Tests for shellpool.process.buffer.StreamBuffer."""

from __future__ import annotations

import threading

from shellpool.process.buffer import StreamBuffer


class TestStreamBufferBasics:
    def test_empty(self) -> None:
        buf = StreamBuffer()
        assert buf.drain() == ""
        assert buf.closed is False

    def test_feed_and_drain(self) -> None:
        buf = StreamBuffer()
        buf.feed(b"hello ")
        buf.feed(b"world\n")
        assert buf.drain() == "hello world\n"

    def test_drain_takes_everything(self) -> None:
        buf = StreamBuffer()
        buf.feed(b"abc")
        buf.drain()
        assert buf.drain() == ""

    def test_feed_after_drain(self) -> None:
        buf = StreamBuffer()
        buf.feed(b"abc")
        buf.drain()
        buf.feed(b"de")
        assert buf.drain() == "de"


class TestStreamBufferDecoding:
    def test_split_multibyte_sequence(self) -> None:
        """A UTF-8 character split across two reads is held until complete."""
        buf = StreamBuffer()
        data = "héllo".encode()
        buf.feed(data[:2])
        assert buf.drain() == "h"
        buf.feed(data[2:])
        assert buf.drain() == "éllo"

    def test_invalid_bytes_replaced(self) -> None:
        buf = StreamBuffer()
        buf.feed(b"ok\xff\n")
        assert buf.drain() == "ok�\n"

    def test_close_flushes_incomplete_sequence(self) -> None:
        buf = StreamBuffer()
        buf.feed("é".encode()[:1])
        buf.close()
        assert buf.closed is True
        assert buf.drain() == "�"


class TestStreamBufferSignalling:
    def test_feed_wakes_waiter(self) -> None:
        buf = StreamBuffer()
        got: list[str] = []

        def waiter() -> None:
            seen = ""

            def arrived() -> bool:
                nonlocal seen
                seen += buf.drain()
                return bool(seen)

            with buf.condition:
                buf.condition.wait_for(arrived, timeout=5)
            got.append(seen)

        t = threading.Thread(target=waiter)
        t.start()
        buf.feed(b"ping")
        t.join(timeout=5)
        assert got == ["ping"]

    def test_close_wakes_waiter(self) -> None:
        buf = StreamBuffer()
        woke = threading.Event()

        def waiter() -> None:
            with buf.condition:
                if buf.condition.wait_for(lambda: buf.closed, timeout=5):
                    woke.set()

        t = threading.Thread(target=waiter)
        t.start()
        buf.close()
        t.join(timeout=5)
        assert woke.is_set()

    def test_shared_condition(self) -> None:
        cond = threading.Condition()
        out = StreamBuffer(cond)
        err = StreamBuffer(cond)
        assert out.condition is err.condition is cond
