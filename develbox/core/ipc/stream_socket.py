"""
Stream socket — a thin wrapper over a Unix domain socket.

One side creates and listens, the other connects. Each accepted
connection carries exactly one JSON document (the handshake) and then
switches to raw bytes in both directions until either side closes.

There is no framing: the JSON reader consumes the socket one byte at a
time and stops at the end of the first complete document, so nothing
after it is swallowed into a buffer. Whatever follows belongs to the
raw stream and can be handed to a child process as-is.
"""

from __future__ import annotations

import errno
import io
import json
import logging
import socket
from pathlib import Path
from typing import Any

from develbox.core.errors import (
    AddressInUse,
    ConnectionRefused,
    DecodeError,
    SocketNotFound,
)

logger = logging.getLogger(__name__)

# Upper bound for the handshake document
MAX_JSON_BYTES = 1024 * 1024
BACKLOG = 5


class Connection:
    """One duplex byte stream, client or server side."""

    def __init__(self, sock: socket.socket):
        self._sock = sock

    # ── Handshake ───────────────────────────────────────────────

    def send_json(self, value: Any) -> None:
        """Send one JSON document with no trailing delimiter."""
        data = json.dumps(value, ensure_ascii=False).encode("utf-8")
        self._sock.sendall(data)

    def receive_json(self) -> Any:
        """Read exactly one JSON object or array from the stream.

        Raises:
            DecodeError: If the peer closes early, sends more than
                ``MAX_JSON_BYTES``, or sends something that is not JSON.
        """
        buf = bytearray()
        depth = 0
        in_string = False
        escaped = False
        while True:
            byte = self._sock.recv(1)
            if not byte:
                raise DecodeError(
                    f"Connection closed after {len(buf)} bytes, "
                    "before a complete JSON document"
                )
            if not buf and byte.isspace():
                continue
            if not buf and byte not in (b"{", b"["):
                raise DecodeError(f"Expected a JSON object, got {byte!r}")

            buf += byte
            if len(buf) > MAX_JSON_BYTES:
                raise DecodeError(f"JSON document exceeds {MAX_JSON_BYTES} bytes")

            # Structural characters are ASCII and never occur inside a
            # multi-byte UTF-8 sequence, so scanning bytes is safe
            if in_string:
                if escaped:
                    escaped = False
                elif byte == b"\\":
                    escaped = True
                elif byte == b'"':
                    in_string = False
                continue
            if byte == b'"':
                in_string = True
            elif byte in (b"{", b"["):
                depth += 1
            elif byte in (b"}", b"]"):
                depth -= 1
                if depth == 0:
                    return _decode(buf)

    # ── Raw stream ──────────────────────────────────────────────

    def send(self, data: bytes) -> None:
        """Write raw bytes, all of them."""
        self._sock.sendall(data)

    def reader(self) -> io.RawIOBase:
        """Unbuffered byte source for the post-handshake phase."""
        return self._sock.makefile("rb", buffering=0)

    def writer(self) -> io.RawIOBase:
        """Unbuffered byte sink for the post-handshake phase."""
        return self._sock.makefile("wb", buffering=0)

    def fileno(self) -> int:
        """The socket descriptor, for wiring straight into a subprocess."""
        return self._sock.fileno()

    def shutdown_write(self) -> None:
        """Signal EOF to the peer while still reading."""
        try:
            self._sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            logger.debug("shutdown(SHUT_WR) failed: %s", e)

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _decode(buf: bytearray) -> Any:
    """Parse a complete handshake document."""
    try:
        return json.loads(buf.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError(f"Handshake is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"Handshake is not valid JSON: {e}") from e


class StreamSocket:
    """A Unix domain socket identified by its filesystem path.

    Server side::

        sock = StreamSocket(path)
        sock.create()
        conn = sock.accept()

    Client side::

        conn = StreamSocket(path).connect()
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._listener: socket.socket | None = None

    def exists(self) -> bool:
        """Whether the socket file exists. Says nothing about liveness."""
        return self.path.exists()

    @property
    def listening(self) -> bool:
        return self._listener is not None

    def create(self) -> None:
        """Bind and listen, creating the parent directory if needed.

        A stale socket file left by a dead server is replaced; a live
        one is not.

        Raises:
            AddressInUse: If another process is listening on the path.
            OSError: If the directory cannot be created or written.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            try:
                listener.bind(str(self.path))
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    raise
                if self._is_live():
                    raise AddressInUse(str(self.path)) from e
                logger.info("Removing stale socket file %s", self.path)
                self.path.unlink(missing_ok=True)
                listener.bind(str(self.path))
            listener.listen(BACKLOG)
        except BaseException:
            listener.close()
            raise

        self._listener = listener
        logger.debug("Listening on %s", self.path)

    def accept(self) -> Connection:
        """Block until a client dials in."""
        if self._listener is None:
            raise RuntimeError("accept() called before create()")
        conn, _ = self._listener.accept()
        return Connection(conn)

    def connect(self) -> Connection:
        """Dial the listener.

        Raises:
            SocketNotFound: If the socket file does not exist.
            ConnectionRefused: If it exists but nobody is listening.
        """
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(self.path))
        except FileNotFoundError as e:
            sock.close()
            raise SocketNotFound(str(self.path)) from e
        except ConnectionRefusedError as e:
            sock.close()
            raise ConnectionRefused(str(self.path)) from e
        except BaseException:
            sock.close()
            raise
        logger.debug("Connected to %s", self.path)
        return Connection(sock)

    def close_listener(self) -> None:
        """Stop listening and unlink the socket file."""
        if self._listener is not None:
            # shutdown() wakes a thread blocked in accept(); close() alone does not
            try:
                self._listener.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._listener.close()
            self._listener = None
        self.path.unlink(missing_ok=True)
        logger.debug("Closed socket %s", self.path)

    def _is_live(self) -> bool:
        probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            probe.connect(str(self.path))
        except OSError:
            return False
        finally:
            probe.close()
        return True
