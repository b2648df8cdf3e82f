"""
=============================================================================
ADDRESS SELECTION
=============================================================================

Stateless helpers a load generator calls for every outgoing request.

=============================================================================
TWO LEVELS OF SPREADING
=============================================================================

    URLPool                         which URL?  → next_url()  (random)
    ├── http://a.example.com/
    │     ├── 10.0.0.1             which address? → next_address()
    │     └── 10.0.0.2               (sticky round-robin by connection)
    └── http://b.example.com/
          └── 10.0.0.3

next_url() draws a URL at random, uniformly, from the CALLER'S OWN
random generator. Sharing one generator between threads would race on
its state, so every thread or connection creates its own with
new_random_state().

next_address() is deterministic: connection i always talks to
addresses[i % count]. With N concurrent connections the load lands
evenly on every address, and a connection that reconnects goes back to
the same backend.

    addresses = [A, B, C]

    connection:  0  1  2  3  4  5
    address:     A  B  C  A  B  C

=============================================================================
"""

import os
import random
from typing import Optional

from .pool import URLDescriptor, URLPool
from .resolver import Address


def new_random_state(seed: Optional[int] = None) -> random.Random:
    """
    Create a generator owned by one thread or connection.

    Seeded from the OS entropy source unless a seed is given.
    """
    if seed is None:
        seed = int.from_bytes(os.urandom(8), "little")
    return random.Random(seed)


def next_url(pool: URLPool, rng: random.Random) -> URLDescriptor:
    """
    Pick a URL uniformly at random.

    A single-URL pool returns its only entry without touching rng, so
    single-target runs are fully deterministic.
    """
    if len(pool) == 1:
        return pool[0]
    return pool[rng.randrange(len(pool))]


def next_address(url: URLDescriptor, connection_index: int) -> Address:
    """Address for a connection: addresses[connection_index % count]."""
    return url.addresses[connection_index % len(url.addresses)]


def same_server(u1: URLDescriptor, u2: URLDescriptor, connection_index: int) -> bool:
    """
    True if both URLs lead to the same backend for this connection.

    Requires equal ports AND equal selected addresses, so a connection
    opened for u1 can be reused for u2.
    """
    if u1.port != u2.port:
        return False
    return next_address(u1, connection_index) == next_address(u2, connection_index)
