"""
=============================================================================
APIBMON - Monitoring agent and target pool for HTTP load testing
=============================================================================

Two halves, used on opposite sides of a load test:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   LOAD GENERATOR HOST                SERVER-UNDER-TEST HOST          │
    │                                                                      │
    │   ┌──────────────────┐   requests    ┌──────────────────┐           │
    │   │ load generator   │ ────────────► │ HTTP server      │           │
    │   │ apibmon.urls     │               └──────────────────┘           │
    │   │  - URLPool       │                                               │
    │   │  - next_url()    │   "CPU\\n"     ┌──────────────────┐           │
    │   │  - next_address()│ ────────────► │ apibmon agent    │           │
    │   └──────────────────┘ ◄──────────── │ (MonitorServer)  │           │
    │                          "37.50\\n"    └──────────────────┘           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    apibmon/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m apibmon <port>)
    ├── config.py            # MonitorConfig, ConfigError, StartupError
    ├── server.py            # MonitorServer
    ├── worker.py            # ConnectionWorker (per-connection protocol loop)
    ├── protocol.py          # Commands and replies
    ├── core/
    │   ├── listener.py      # Accept loop, spawn_worker
    │   ├── connection.py    # Connection wrapper
    │   └── line_buffer.py   # LineBuffer
    ├── monitor/
    │   └── cpu.py           # CPUMonitor (psutil)
    └── urls/
        ├── errors.py        # URLPoolError and friends
        ├── resolver.py      # DNS lookups
        ├── pool.py          # URLDescriptor, URLPool, loaders
        └── selector.py      # next_url, next_address, same_server

=============================================================================
QUICK START
=============================================================================

    $ python -m apibmon 10001
    $ printf 'HELLO\\nCPU\\nMEM\\nBYE\\n' | nc localhost 10001
    Hi!
    2.13
    48.07
    BYE

=============================================================================
"""

__version__ = "1.0.0"

from .config import MonitorConfig, ConfigError, StartupError
from .server import MonitorServer

__all__ = [
    "MonitorServer",
    "MonitorConfig",
    "ConfigError",
    "StartupError",
    "__version__",
]
