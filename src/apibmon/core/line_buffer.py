"""
=============================================================================
LINE BUFFER
=============================================================================

Incremental extraction of newline-delimited records from a byte stream.

=============================================================================
WHY NOT JUST split(b"\\n")?
=============================================================================

TCP is a byte stream. A client that sends "HELLO\\nCPU\\n" might be read
by the server as:

    recv() → "HEL"
    recv() → "LO\\nCPU\\n"

So a line can straddle two reads, and one read can carry several lines.
We keep the bytes in a FIXED buffer with two cursors:

    ┌───────────────────────────────────────────────────────────────┐
    │ H E L L O \\n C P U \\n M E                                    │
    └───────────────────────────────────────────────────────────────┘
      ▲                       ▲     ▲                              ▲
      0                   consumed written                   capacity

    - bytes in [0, consumed)        have already been returned as lines
    - bytes in [consumed, written)  are buffered but not yet returned
    - bytes in [written, capacity)  are free space for the next read

Invariant: 0 <= consumed <= written <= capacity

=============================================================================
LIFECYCLE OF ONE READ
=============================================================================

    fill(read)          read up to (capacity - written) new bytes
        │
        ▼
    next_line()         repeat until it returns None
        │
        ▼
    compact()           move the partial tail to the start of the buffer

compact() raises LineOverflowError when the partial tail already fills
the whole buffer. No delimiter can ever be found in that case, so the
stream has to be abandoned.

=============================================================================
"""

from typing import Callable, Optional


DEFAULT_CAPACITY = 128


class LineOverflowError(Exception):
    """A single line is longer than the buffer can hold."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"Line exceeds buffer capacity of {capacity} bytes")


class LineBuffer:
    """
    Fixed-capacity buffer that yields complete lines.

    The buffer never touches a socket or a file itself. Bytes are pushed
    in with feed(), or pulled from any callable with the signature of
    socket.recv / file.read via fill(). That keeps it testable with
    plain byte strings.

    Usage:
        buf = LineBuffer(128)
        while buf.fill(sock.recv):
            while (line := buf.next_line()) is not None:
                handle(line)
            buf.compact()
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 2:
            raise ValueError(f"capacity must be >= 2, got {capacity}")

        self._buf = bytearray(capacity)
        self._capacity = capacity
        self._written = 0
        self._consumed = 0

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def written(self) -> int:
        """Write cursor: number of bytes currently held."""
        return self._written

    @property
    def consumed(self) -> int:
        """Consumed cursor: bytes already returned as lines."""
        return self._consumed

    @property
    def free_space(self) -> int:
        """How many bytes the next feed() can accept."""
        return self._capacity - self._written

    @property
    def pending(self) -> int:
        """Buffered bytes that have not been returned yet."""
        return self._written - self._consumed

    # =========================================================================
    # INPUT
    # =========================================================================

    def feed(self, data: bytes) -> None:
        """
        Append bytes at the write cursor.

        Raises:
            LineOverflowError: If data does not fit in the free space.
        """
        if len(data) > self.free_space:
            raise LineOverflowError(self._capacity)

        end = self._written + len(data)
        self._buf[self._written:end] = data
        self._written = end

    def fill(self, read: Callable[[int], bytes]) -> int:
        """
        Pull the next chunk from a byte source.

        Args:
            read: Called with the number of free bytes, like sock.recv
                  or file.read. An empty result means end of stream.

        Returns:
            Number of bytes added. 0 means the source is exhausted.
        """
        if self.free_space == 0:
            raise LineOverflowError(self._capacity)

        data = read(self.free_space)
        if not data:
            return 0

        self.feed(data)
        return len(data)

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def next_line(self) -> Optional[bytes]:
        """
        Return the next complete line, or None if there isn't one yet.

        The delimiter is not included, nor is a CR right before it:

            b"HELLO\\r\\n"  →  b"HELLO"
            b"HELLO\\n"    →  b"HELLO"
            b"HEL"         →  None  (wait for more bytes)
        """
        newline = self._buf.find(b"\n", self._consumed, self._written)
        if newline < 0:
            return None

        end = newline
        if end > self._consumed and self._buf[end - 1] == 0x0D:  # \r
            end -= 1

        line = bytes(self._buf[self._consumed:end])
        self._consumed = newline + 1
        return line

    def remainder(self) -> bytes:
        """
        Return and consume whatever trails the last delimiter.

        Only meaningful at end of stream, where an unterminated final
        line should still count (the last URL in a file, for example).
        """
        tail = bytes(self._buf[self._consumed:self._written])
        if tail.endswith(b"\r"):
            tail = tail[:-1]
        self._consumed = self._written
        return tail

    # =========================================================================
    # HOUSEKEEPING
    # =========================================================================

    def compact(self) -> None:
        """
        Move the unconsumed partial line to the start of the buffer.

        Call this once next_line() has returned None.

        Raises:
            LineOverflowError: The partial line already fills the whole
                               buffer, so it can never be terminated.
        """
        if self._consumed == 0 and self._written == self._capacity:
            raise LineOverflowError(self._capacity)

        remaining = self._written - self._consumed
        if remaining and self._consumed:
            self._buf[:remaining] = self._buf[self._consumed:self._written]

        self._written = remaining
        self._consumed = 0

    def __repr__(self) -> str:
        return (
            f"LineBuffer(capacity={self._capacity}, "
            f"consumed={self._consumed}, written={self._written})"
        )
