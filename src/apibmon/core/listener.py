"""
=============================================================================
TCP LISTENER
=============================================================================

Accepts client connections and gives each one its own detached thread.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create an IPv4 TCP socket
    2. setsockopt  SO_REUSEADDR, so a restarted agent can rebind at once
    3. bind()      Reserve HOST:PORT
    4. listen()    Start queueing connections (small backlog)
    5. accept()    Block until a client connects, get a NEW socket for it

Steps 1-4 happen in bind() and any failure there is a StartupError: the
process cannot do its job and exits. Step 5 repeats forever in
serve_forever(); a failure there only affects that one client.

=============================================================================
THREAD-PER-CONNECTION
=============================================================================

                    ┌───────────────────────┐
                    │   Listening Socket    │  accept loop, one thread
                    └───────────┬───────────┘
                                │ spawn_worker()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ worker 1  │         │ worker 2  │         │ worker 3  │
    │ conn + buf│         │ conn + buf│         │ conn + buf│
    └───────────┘         └───────────┘         └───────────┘

Workers are daemon threads and are never joined. A worker owns its
Connection outright; the listener forgets it as soon as it is spawned.

KNOWN GAPS: there is no shutdown path, no read timeout and no cap on the
number of workers. An idle client holds a thread until it disconnects.

=============================================================================
"""

import socket
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import MonitorConfig, StartupError
from .connection import Connection


logger = logging.getLogger(__name__)


def spawn_worker(target: Callable[..., None], *args, name: Optional[str] = None) -> threading.Thread:
    """
    Run target(*args) on a new detached thread.

    Raises:
        RuntimeError: If the interpreter cannot start another thread.
    """
    thread = threading.Thread(target=target, args=args, name=name, daemon=True)
    thread.start()
    return thread


class Listener:
    """
    Accept loop for the monitoring agent.

    Usage:
        def handle(conn: Connection):
            with conn:
                ...

        listener = Listener(config)
        listener.bind()              # StartupError on failure
        listener.serve_forever(handle)  # never returns
    """

    def __init__(self, config: MonitorConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._ready = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port). Reflects the real port when config.port is 0."""
        if self._socket is None:
            return (self.config.host, self.config.port)
        return self._socket.getsockname()[:2]

    @property
    def is_listening(self) -> bool:
        return self._ready.is_set()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def bind(self) -> None:
        """
        Create, bind and listen.

        Raises:
            StartupError: Any socket-level failure.
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise StartupError("Cannot create socket", e) from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            raise StartupError(
                f"Cannot listen on {self.config.host}:{self.config.port}", e
            ) from e

        self._socket = sock
        self._ready.set()
        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

    def serve_forever(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Accept connections until the process exits.

        Each connection is handed to connection_handler on its own
        thread. The handler owns the connection and must close it.
        """
        if self._socket is None:
            self.bind()

        while True:
            self._accept_one(connection_handler)

    def _accept_one(self, connection_handler: Callable[[Connection], None]) -> None:
        try:
            client_socket, client_address = self._socket.accept()
        except OSError as e:
            logger.error(f"Error accepting client socket: {e}")
            return

        conn = Connection(
            socket=client_socket,
            address=client_address,
            buffer_size=self.config.read_buffer_size,
        )
        logger.debug(f"[{conn.id}] Accepted connection from {conn.client_ip}:{conn.client_port}")

        try:
            spawn_worker(connection_handler, conn, name=f"worker-{conn.id}")
        except RuntimeError as e:
            logger.error(f"[{conn.id}] Error creating worker thread: {e}")
            conn.close()


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. bind() sets up the listening socket, failures are StartupError
# 2. serve_forever() accepts without end
# 3. Every client gets a Connection and a detached daemon thread
# 4. accept() and thread-start failures are logged, the loop goes on
# =============================================================================
