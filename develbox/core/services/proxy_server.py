"""
Proxy server — run package operations as root on behalf of the container user.

The host side of the socket proxy. Inside the container an unprivileged
user cannot run the package manager, so ``develbox add`` connects to
this server instead and sends its Operation. The server runs the
synthesized command as root in the container, with the connection
itself wired to the child's stdin/stdout/stderr, so the caller sees an
interactive session.

Concurrency model
─────────────────
- The calling thread runs the accept loop (``serve_forever``).
- Accepted connections go through a queue of size 1 to a single
  worker thread, so at most one operation executes at a time and the
  accept loop blocks while one more is waiting.
- ``_lock`` makes manifest update + persist one critical section,
  independently of how many workers exist.

There is no timeout: a hung child keeps its connection (and the
worker) busy until it exits.
"""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path

from pydantic import ValidationError

from develbox.adapters.base import ContainerHandle
from develbox.core.errors import (
    ChildProcessFailure,
    DecodeError,
    DevelboxError,
    ManifestPersistError,
)
from develbox.core.ipc.stream_socket import Connection, StreamSocket
from develbox.core.models.config import DevelboxConfig
from develbox.core.models.operation import Operation
from develbox.core.services.pkg_ops import PersistHook, run_operation

logger = logging.getLogger(__name__)

# How often an idle worker checks for shutdown
_POLL_S = 0.2


class ProxyServer:
    """Accept loop plus a single serializing worker."""

    def __init__(
        self,
        socket_path: str | Path,
        config: DevelboxConfig,
        handle: ContainerHandle,
        persist: PersistHook | None = None,
    ):
        self.socket = StreamSocket(socket_path)
        self.config = config
        self.handle = handle
        self.persist = persist
        self._queue: queue.Queue[Connection] = queue.Queue(maxsize=1)
        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._worker: threading.Thread | None = None

    # ── Lifecycle ───────────────────────────────────────────────

    def start(self) -> None:
        """Bind the socket and start the worker.

        Raises:
            AddressInUse: If another server owns the path.
            OSError: If the socket cannot be created.
        """
        self.socket.create()
        self._stopping.clear()
        self._worker = threading.Thread(
            target=self._work, name="develbox-proxy-worker", daemon=True
        )
        self._worker.start()
        logger.info("Proxy listening on %s", self.socket.path)

    def serve_forever(self) -> None:
        """Accept connections until ``stop()`` is called.

        Raises:
            OSError: If accept fails for any reason other than shutdown.
        """
        if not self.socket.listening:
            self.start()

        while not self._stopping.is_set():
            logger.debug("Waiting for requests...")
            try:
                conn = self.socket.accept()
            except OSError:
                if self._stopping.is_set():
                    break
                logger.exception("Accept failed on %s", self.socket.path)
                raise

            self._enqueue(conn)

    def _enqueue(self, conn: Connection) -> None:
        # Blocks while the worker is busy and one connection is already waiting
        while not self._stopping.is_set():
            try:
                self._queue.put(conn, timeout=_POLL_S)
                return
            except queue.Full:
                continue
        conn.close()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop accepting, drop queued connections, unlink the socket."""
        self._stopping.set()
        self.socket.close_listener()

        if self._worker is not None:
            self._worker.join(timeout)
            self._worker = None

        while True:
            try:
                self._queue.get_nowait().close()
            except queue.Empty:
                break
        logger.info("Proxy stopped")

    # ── Worker ──────────────────────────────────────────────────

    def _work(self) -> None:
        while not self._stopping.is_set():
            try:
                conn = self._queue.get(timeout=_POLL_S)
            except queue.Empty:
                continue
            try:
                self.handle_connection(conn)
            except Exception:
                logger.exception("Unexpected error while handling a connection")

    def handle_connection(self, conn: Connection) -> None:
        """Serve one connection: handshake, execute, record, close."""
        with conn:
            try:
                op = Operation.from_wire(conn.receive_json())
            except DecodeError as e:
                logger.warning("Dropping connection: %s", e)
                return
            except ValidationError as e:
                logger.warning("Dropping connection, invalid operation: %s", e)
                return

            logger.info("Received operation: %s", op.describe())
            fd = conn.fileno()

            with self._lock:
                try:
                    run_operation(
                        op,
                        self.config,
                        self.handle,
                        persist=self.persist,
                        stdin=fd,
                        stdout=fd,
                        stderr=fd,
                    )
                except ChildProcessFailure as e:
                    logger.warning("%s, package lists not updated", e)
                    return
                except ManifestPersistError as e:
                    logger.error("%s", e)
                    return
                except (DevelboxError, OSError) as e:
                    logger.error("Operation '%s' failed: %s", op.kind.value, e)
                    _report(conn, e)
                    return

            logger.info("Operation '%s' finished", op.kind.value)


def _report(conn: Connection, error: Exception) -> None:
    """Tell the caller why nothing ran, since it only sees the stream."""
    try:
        conn.send(f"develbox: {error}\n".encode("utf-8"))
    except OSError:
        pass
