"""
=============================================================================
URL POOL
=============================================================================

The set of target URLs a load generator spreads its requests over.

=============================================================================
LOADING
=============================================================================

    load_one("http://example.com/")             one target
    load_file("targets.txt")                    one target per line

For every URL:

    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │ parse        │───►│ check scheme │───►│ resolve host │
    │ (urlsplit)   │    │ http / https │    │ (IPv4)       │
    └──────────────┘    └──────────────┘    └──────────────┘
     URLParseError       InvalidScheme       ResolutionError

Missing ports default to 80 for http and 443 for https.

ALL OR NOTHING: if any single entry fails, the whole load fails and the
caller gets an exception, never a pool holding the entries that happened
to come before the bad one. Descriptors accumulate in a local list and
the URLPool only exists once every entry has made it through.

=============================================================================
IMMUTABILITY
=============================================================================

A pool is built once at startup, before any worker thread exists, and
is never modified afterwards. Frozen dataclasses over tuples make that
explicit, so every worker can read it without locks.

=============================================================================
URL FILE FORMAT
=============================================================================

    http://host-a.example.com/index.html
    http://host-b.example.com:8080/api/items?limit=10
    https://host-c.example.com/

Every non-empty line is one URL. There is no comment syntax.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Tuple, Union
from os import PathLike
from urllib.parse import urlsplit

from ..core.line_buffer import LineBuffer, LineOverflowError
from .errors import URLPoolError, URLParseError, InvalidScheme, ResolutionError
from .resolver import Address, Resolver, resolve


logger = logging.getLogger(__name__)


URL_BUFFER_SIZE = 8192

DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
}


@dataclass(frozen=True)
class URLDescriptor:
    """
    A parsed and resolved target.

    Attributes:
        url: The URL as written.
        scheme: "http" or "https".
        host: Host name from the URL.
        port: Explicit port, or the scheme default.
        path: Path and query string to request ("/" when empty).
        addresses: Resolved (ip, port) addresses, never empty.
        is_ssl: True for https.
    """

    url: str
    scheme: str
    host: str
    port: int
    path: str
    addresses: Tuple[Address, ...]
    is_ssl: bool

    @property
    def address_count(self) -> int:
        return len(self.addresses)


@dataclass(frozen=True)
class URLPool:
    """
    An immutable, non-empty, ordered collection of URLDescriptors.

    Supports len(), indexing and iteration.
    """

    urls: Tuple[URLDescriptor, ...]

    def __post_init__(self):
        if not self.urls:
            raise URLPoolError("URL pool is empty")

    def __len__(self) -> int:
        return len(self.urls)

    def __getitem__(self, index: int) -> URLDescriptor:
        return self.urls[index]

    def __iter__(self) -> Iterator[URLDescriptor]:
        return iter(self.urls)


# =============================================================================
# PARSING
# =============================================================================


def parse_url(url: str, resolver: Resolver = resolve) -> URLDescriptor:
    """
    Parse, validate and resolve a single URL.

    Raises:
        URLParseError: Malformed URL.
        InvalidScheme: Scheme other than http/https.
        ResolutionError: Host lookup failed or found no addresses.
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise URLParseError(url, str(e)) from e

    if not parts.scheme:
        raise URLParseError(url, "missing URL scheme")

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise InvalidScheme(url, parts.scheme)

    if not parts.hostname:
        raise URLParseError(url, "missing host")

    try:
        explicit_port = parts.port
    except ValueError as e:
        raise URLParseError(url, str(e)) from e

    port = explicit_port if explicit_port is not None else DEFAULT_PORTS[scheme]

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    addresses = tuple(resolver(parts.hostname, port))
    if not addresses:
        raise ResolutionError(parts.hostname, "no addresses found")

    return URLDescriptor(
        url=url,
        scheme=scheme,
        host=parts.hostname,
        port=port,
        path=path,
        addresses=addresses,
        is_ssl=(scheme == "https"),
    )


# =============================================================================
# LOADING
# =============================================================================


def load_one(url: str, resolver: Resolver = resolve) -> URLPool:
    """Build a single-entry pool."""
    return URLPool((parse_url(url.strip(), resolver),))


def read_url_lines(path: Union[str, PathLike], buffer_size: int = URL_BUFFER_SIZE) -> Iterator[Tuple[int, str]]:
    """
    Yield (line_number, text) for every non-empty line of a URL file.

    The file goes through the same LineBuffer the network protocol uses.
    A final line without a trailing newline is still returned.

    Raises:
        URLPoolError: The file cannot be read.
        URLParseError: A line is longer than buffer_size.
    """
    buf = LineBuffer(buffer_size)
    line_number = 0

    try:
        with open(path, "rb") as f:
            while buf.fill(f.read):
                while (raw := buf.next_line()) is not None:
                    line_number += 1
                    text = raw.decode("utf-8", errors="replace").strip()
                    if text:
                        yield line_number, text
                try:
                    buf.compact()
                except LineOverflowError as e:
                    raise URLParseError(f"{path}:{line_number + 1}", str(e)) from e
    except OSError as e:
        raise URLPoolError(f'Can\'t open "{path}": {e}') from e

    tail = buf.remainder().decode("utf-8", errors="replace").strip()
    if tail:
        yield line_number + 1, tail


def load_file(path: Union[str, PathLike], resolver: Resolver = resolve) -> URLPool:
    """
    Build a pool from a file with one URL per line.

    Raises:
        URLPoolError: Unreadable or empty file, or any entry failed.
                      Nothing is returned in that case.
    """
    descriptors = []

    for line_number, text in read_url_lines(path):
        try:
            descriptors.append(parse_url(text, resolver))
        except URLPoolError as e:
            logger.error(f"{path}:{line_number}: {e}")
            raise

    if not descriptors:
        raise URLPoolError(f'No URLs found in "{path}"')

    logger.info(f'Read {len(descriptors)} URLs from "{path}"')
    return URLPool(tuple(descriptors))
