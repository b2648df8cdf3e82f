"""
=============================================================================
URLS PACKAGE - Target pool for load generation
=============================================================================

    from apibmon.urls import load_file, new_random_state, next_url, next_address

    pool = load_file("targets.txt")          # once, before workers start

    # in each worker thread
    rng = new_random_state()
    url = next_url(pool, rng)
    host, port = next_address(url, connection_index)

=============================================================================
"""

from .errors import URLPoolError, URLParseError, InvalidScheme, ResolutionError
from .resolver import Address, resolve
from .pool import URLDescriptor, URLPool, parse_url, load_one, load_file
from .selector import new_random_state, next_url, next_address, same_server

__all__ = [
    # Errors
    "URLPoolError",
    "URLParseError",
    "InvalidScheme",
    "ResolutionError",
    # Data
    "Address",
    "URLDescriptor",
    "URLPool",
    # Loading
    "resolve",
    "parse_url",
    "load_one",
    "load_file",
    # Selection
    "new_random_state",
    "next_url",
    "next_address",
    "same_server",
]
