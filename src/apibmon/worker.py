"""
=============================================================================
CONNECTION WORKER
=============================================================================

Runs the protocol for one client, on that client's own thread.

    ┌─────────────────────────────────────────────────────────────────┐
    │                     ConnectionWorker.run()                       │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   baseline = monitor.sample()                                    │
    │                                                                  │
    │   with conn:                        ← close on every exit path   │
    │       while conn.receive():         ← READING (blocks)           │
    │           for line in conn.lines(): ← DISPATCH                   │
    │               reply = handle(line)                               │
    │               send(reply)                                        │
    │               BYE/QUIT? → stop                                   │
    │           (overflow raised here → stop, no reply)                │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

Everything a worker touches is its own: the connection, its buffer, and
the previous CPU sample. The monitor it shares with other workers holds
no state.

=============================================================================
"""

import logging
from typing import Optional

from .core.connection import Connection
from .core.line_buffer import LineOverflowError
from .monitor.cpu import CPUMonitor, CPUUsageSample
from .protocol import (
    Command,
    HELLO_REPLY,
    BYE_REPLY,
    INVALID_REPLY,
    format_percent,
)


logger = logging.getLogger(__name__)


class ConnectionWorker:
    """
    Answers monitor commands on one connection.

    Args:
        conn: The accepted client connection. The worker closes it.
        monitor: Source of CPU samples and memory usage.
    """

    def __init__(self, conn: Connection, monitor: Optional[CPUMonitor] = None):
        self.conn = conn
        self.monitor = monitor or CPUMonitor()
        self._last_cpu: Optional[CPUUsageSample] = None

    def run(self) -> None:
        """Serve the connection until BYE/QUIT, EOF, an error or overflow."""
        conn = self.conn
        with conn:
            try:
                self._last_cpu = self.monitor.sample()
                self._serve()
            except LineOverflowError as e:
                logger.warning(f"[{conn.id}] {e}, closing connection")
            except Exception:
                logger.exception(f"[{conn.id}] Unexpected error in worker")

    def _serve(self) -> None:
        conn = self.conn
        while conn.receive():
            for line in conn.lines():
                if not self._dispatch(line):
                    return

    def _dispatch(self, line: str) -> bool:
        """
        Handle one line and send the reply.

        Returns:
            False once the connection should close.
        """
        command = Command.parse(line)
        logger.debug(f"[{self.conn.id}] {command.name} <- {line!r}")

        reply = self.handle(command)
        if not self.conn.send(reply):
            return False

        return not command.closes_connection

    def handle(self, command: Command) -> str:
        """Build the reply for a command, updating the CPU baseline for CPU."""
        if command is Command.HELLO:
            return HELLO_REPLY

        if command is Command.CPU:
            current = self.monitor.sample()
            usage = current.percent_since(self._last_cpu) if self._last_cpu else 0.0
            self._last_cpu = current
            return format_percent(usage)

        if command is Command.MEM:
            return format_percent(self.monitor.memory_percent())

        if command.closes_connection:
            return BYE_REPLY

        return INVALID_REPLY


def serve_connection(conn: Connection, monitor: Optional[CPUMonitor] = None) -> None:
    """Thread entry point: run a ConnectionWorker over conn."""
    ConnectionWorker(conn, monitor).run()
