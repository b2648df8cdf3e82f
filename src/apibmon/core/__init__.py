"""
=============================================================================
CORE MODULE - Sockets, connections and line buffering
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Listener                                                           │
    │  - Binds, listens, accepts                                          │
    │  - One detached thread per connection (spawn_worker)                │
    ├─────────────────────────────────────────────────────────────────────┤
    │  Connection                                                         │
    │  - Owns one client socket and its LineBuffer                        │
    │  - Always shut down and closed on exit                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │  LineBuffer                                                         │
    │  - Fixed-size buffer, yields newline-delimited lines                │
    │  - LineOverflowError when a line cannot fit                         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .line_buffer import LineBuffer, LineOverflowError
from .connection import Connection, ConnectionState
from .listener import Listener, spawn_worker

__all__ = [
    "LineBuffer",
    "LineOverflowError",
    "Connection",
    "ConnectionState",
    "Listener",
    "spawn_worker",
]
