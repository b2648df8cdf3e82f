"""
=============================================================================
MONITOR CONFIGURATION
=============================================================================

Centralized configuration for the monitoring agent.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m apibmon 10001                                    │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── APIBMON_PORT=10001 python -m apibmon                       │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Configuration is validated eagerly at startup. A bad value is a usage
error (exit code 2), a socket that cannot be bound is a startup error
(exit code 3).

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """A configuration value is missing or out of range."""


class StartupError(Exception):
    """The listening socket could not be created, bound or put in listen mode."""

    def __init__(self, message: str, cause: Optional[OSError] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


@dataclass
class MonitorConfig:
    """
    Configuration for the monitoring agent.

    NETWORK SETTINGS
    - host, port, backlog

    PROTOCOL SETTINGS
    - read_buffer_size

    LOGGING
    - log_level
    """

    host: str = "0.0.0.0"
    """
    The IPv4 address to bind to. The agent usually runs next to the
    server under test, reachable from the load generator, so the
    default is every interface.
    """

    port: int = 10001
    """
    The port number to listen on. 0 lets the OS pick (tests use this).
    """

    backlog: int = 8
    """
    Maximum number of queued connections. Clients are a handful of
    load generators, so the queue is kept small.
    """

    read_buffer_size: int = 128
    """
    Capacity of each connection's line buffer in bytes. A command line
    longer than this is a protocol violation and drops the connection.
    """

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    @classmethod
    def from_env(cls, port: Optional[int] = None) -> "MonitorConfig":
        """
        Create configuration from environment variables.

        APIBMON_HOST       Bind address (default: 0.0.0.0)
        APIBMON_PORT       Listening port (default: 10001)
        APIBMON_LOG_LEVEL  Logging level (default: INFO)

        An explicit port wins and APIBMON_PORT is then not read at all.
        """
        if port is None:
            raw_port = os.getenv("APIBMON_PORT", "10001")
            try:
                port = int(raw_port)
            except ValueError:
                raise ConfigError(f"Invalid port: {raw_port!r}. Must be an integer.")

        return cls(
            host=os.getenv("APIBMON_HOST", "0.0.0.0"),
            port=port,
            log_level=os.getenv("APIBMON_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ConfigError("backlog must be >= 1")

        if self.read_buffer_size < 2:
            raise ConfigError("read_buffer_size must be >= 2")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")
