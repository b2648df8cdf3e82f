"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with line-oriented reading, sending and
a guaranteed close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A client that sends

    send("HELLO\\n")
    send("CPU\\n")

may be read by the server as "HELLO\\nCPU\\n" in one recv(), or as
"HEL" followed by "LO\\nCPU\\n". The monitor protocol marks the end of each
command with a newline, so the Connection keeps a LineBuffer between
recv() calls and only hands complete lines to the worker.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

          accept()
             │
             ▼
            NEW
             │
             ▼
    ┌───► READING ──── EOF / error / overflow ──────┐
    │        │                                      │
    │        │ complete line                        │
    │        ▼                                      │
    └──── DISPATCH ──── BYE / QUIT ──────────► CLOSING
                                                    │
                                                    ▼
                                                 CLOSED

=============================================================================
RESOURCE OWNERSHIP
=============================================================================

A Connection is owned by exactly one worker thread. Nothing in it is
shared, so there are no locks. Using it as a context manager guarantees
that shutdown + close run on every exit path, including exceptions.

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Iterator

from .line_buffer import LineBuffer, DEFAULT_CAPACITY


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"              # Just accepted, nothing read yet
    READING = "reading"      # Waiting on recv()
    DISPATCH = "dispatch"    # Handling a complete command line
    CLOSING = "closing"      # Shutdown sequence in progress
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket (blocking, no timeout).
        address: Client's (ip, port) tuple.
        id: Short identifier used as a log prefix.
        state: Current connection state.
        buffer_size: Capacity of the line buffer. A command longer than
                     this is a protocol violation.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    buffer_size: int = DEFAULT_CAPACITY
    lines_handled: int = 0

    _lines: LineBuffer = field(init=False, repr=False)

    def __post_init__(self):
        # Reads block until data arrives; idle clients are never timed out.
        self.socket.setblocking(True)
        self._lines = LineBuffer(self.buffer_size)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1]

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def receive(self) -> bool:
        """
        Block until the next chunk of bytes arrives.

        Returns:
            True if bytes were buffered, False on EOF or a socket error.
        """
        self.state = ConnectionState.READING
        try:
            received = self._lines.fill(self.socket.recv)
        except (ConnectionResetError, BrokenPipeError):
            logger.debug(f"[{self.id}] Connection reset by peer")
            return False
        except OSError as e:
            logger.debug(f"[{self.id}] Read failed: {e}")
            return False

        return received > 0

    def lines(self) -> Iterator[str]:
        """
        Yield every complete line currently buffered, then compact.

        Lines are decoded as ASCII; undecodable bytes are replaced so an
        unknown command still gets an "Invalid command" reply.

        If the consumer stops early (the client said BYE) the buffer is
        left as is, since the connection is about to close anyway.

        Raises:
            LineOverflowError: From compact(), once all complete lines
                               have been yielded and the partial line
                               left over fills the whole buffer.
        """
        while True:
            raw = self._lines.next_line()
            if raw is None:
                break
            self.state = ConnectionState.DISPATCH
            self.lines_handled += 1
            yield raw.decode("ascii", errors="replace")

        self._lines.compact()

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, message: str) -> bool:
        """
        Send a reply to the client.

        Returns:
            True if send succeeded, False if the connection is lost.
        """
        try:
            self.socket.sendall(message.encode("ascii"))
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Shut down both directions and release the socket.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.lines_handled} lines")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
