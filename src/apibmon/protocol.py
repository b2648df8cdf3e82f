"""
=============================================================================
MONITOR WIRE PROTOCOL
=============================================================================

One command per line, LF terminated (CR optional), case-insensitive.

    ┌──────────────┬──────────────────────┬──────────────┐
    │ Command      │ Reply                │ Connection   │
    ├──────────────┼──────────────────────┼──────────────┤
    │ HELLO        │ Hi!                  │ stays open   │
    │ CPU          │ 12.34  (percent)     │ stays open   │
    │ MEM          │ 56.78  (percent)     │ stays open   │
    │ BYE / QUIT   │ BYE                  │ closed       │
    │ anything else│ Invalid command      │ stays open   │
    └──────────────┴──────────────────────┴──────────────┘

Example session:

    client: HELLO        server: Hi!
    client: cpu          server: 3.25
    client: Mem          server: 41.90
    client: stats        server: Invalid command
    client: bye          server: BYE
                         (server closes the socket)

=============================================================================
"""

from enum import Enum


class Command(Enum):
    HELLO = "HELLO"
    CPU = "CPU"
    MEM = "MEM"
    BYE = "BYE"
    QUIT = "QUIT"
    INVALID = ""

    @classmethod
    def parse(cls, line: str) -> "Command":
        """Map one protocol line to a command, INVALID if unknown."""
        word = line.strip().upper()
        if not word:
            return cls.INVALID
        try:
            return cls(word)
        except ValueError:
            return cls.INVALID

    @property
    def closes_connection(self) -> bool:
        return self in (Command.BYE, Command.QUIT)


HELLO_REPLY = "Hi!\n"
BYE_REPLY = "BYE\n"
INVALID_REPLY = "Invalid command\n"


def format_percent(value: float) -> str:
    """Format a percentage reply: two decimals, newline terminated."""
    return f"{value:.2f}\n"
