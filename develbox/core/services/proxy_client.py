"""
Proxy client — hand an Operation to the host and mirror the session.

Connects to the proxy socket, sends the Operation as JSON, then runs
two copy loops at once: local stdin → socket and socket → local
stdout. The call returns when the server closes the connection (the
child has exited). The stdin loop runs in a daemon thread and is never
joined, so a user who is not typing does not keep the call alive.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import BinaryIO

from develbox.core.errors import SocketNotFound
from develbox.core.ipc.stream_socket import Connection, StreamSocket
from develbox.core.models.operation import Operation

logger = logging.getLogger(__name__)

CHUNK = 4096


def send_operation(
    op: Operation,
    socket_path: str | Path,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
) -> None:
    """Run ``op`` through the proxy at ``socket_path``.

    Args:
        op: The operation to request.
        socket_path: Where the proxy server listens.
        stdin: Source forwarded to the remote command (default: our stdin).
        stdout: Sink for the remote output (default: our stdout).

    Raises:
        SocketNotFound: If there is no socket file. No connect is tried.
        ConnectionRefused: If nothing listens on the socket.
    """
    sock = StreamSocket(socket_path)
    if not sock.exists():
        raise SocketNotFound(str(sock.path))

    src = stdin if stdin is not None else sys.stdin.buffer
    dst = stdout if stdout is not None else sys.stdout.buffer

    with sock.connect() as conn:
        logger.debug("Sending operation: %s", op.describe())
        conn.send_json(op.to_wire())

        threading.Thread(
            target=_forward_input,
            args=(src, conn),
            name="develbox-stdin",
            daemon=True,
        ).start()

        _copy_output(conn, dst)
    logger.debug("Proxy closed the connection")


def _forward_input(src: BinaryIO, conn: Connection) -> None:
    read = getattr(src, "read1", src.read)
    try:
        while True:
            data = read(CHUNK)
            if not data:
                break
            conn.send(data)
    except (OSError, ValueError) as e:
        # The connection is gone once the remote command has finished
        logger.debug("Stopped forwarding stdin: %s", e)
        return
    conn.shutdown_write()


def _copy_output(conn: Connection, dst: BinaryIO) -> None:
    source = conn.reader()
    while True:
        data = source.read(CHUNK)
        if not data:
            break
        dst.write(data)
        dst.flush()
