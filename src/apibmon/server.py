"""
=============================================================================
MONITOR SERVER
=============================================================================

Glues the pieces together:

    ┌───────────────────────────────────────────────────────────────────┐
    │                         MonitorServer                              │
    │                                                                    │
    │   ┌──────────┐   Connection   ┌──────────────────┐                 │
    │   │ Listener │ ─────────────► │ ConnectionWorker │ ─► CPUMonitor   │
    │   └──────────┘  (new thread)  └──────────────────┘    (psutil)     │
    │                                                                    │
    └───────────────────────────────────────────────────────────────────┘

    server = MonitorServer(MonitorConfig(port=10001))
    server.run()    # blocks until the process is killed

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import MonitorConfig
from .core.connection import Connection
from .core.listener import Listener
from .monitor.cpu import CPUMonitor
from .worker import serve_connection


logger = logging.getLogger(__name__)


class MonitorServer:
    """
    The monitoring agent.

    Args:
        config: Server configuration. Defaults to MonitorConfig().
        monitor: CPU/memory source shared by all workers.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        monitor: Optional[CPUMonitor] = None,
    ):
        self.config = config or MonitorConfig()
        self.monitor = monitor or CPUMonitor()
        self._listener = Listener(self.config)

    @property
    def address(self) -> Tuple[str, int]:
        return self._listener.address

    @property
    def listener(self) -> Listener:
        return self._listener

    def bind(self) -> None:
        """Bind the listening socket. Raises StartupError."""
        self._listener.bind()

    def run(self) -> None:
        """
        Bind (if needed) and accept connections forever.

        Raises:
            StartupError: The socket could not be set up.
        """
        self._setup_logging()
        if not self._listener.is_listening:
            self.bind()
        self._listener.serve_forever(self._handle_connection)

    def _handle_connection(self, conn: Connection) -> None:
        """Runs on the worker thread."""
        serve_connection(conn, self.monitor)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = self.config.log_level_number

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("apibmon").setLevel(level)
