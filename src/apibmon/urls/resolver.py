"""
=============================================================================
ADDRESS RESOLUTION
=============================================================================

Turns a host name into the list of socket addresses a client can connect
to. A name with several A records (a DNS round-robin, a load balancer
pool) resolves to several addresses, and the selector spreads
connections across all of them.

    resolve("example.com", 80)
        → (("93.184.216.34", 80),)

    resolve("backends.internal", 8080)
        → (("10.0.0.11", 8080), ("10.0.0.12", 8080), ("10.0.0.13", 8080))

Lookups are IPv4 only, and happen once per URL when the pool is loaded.

=============================================================================
"""

import socket
import logging
from typing import Callable, Tuple

from .errors import ResolutionError


logger = logging.getLogger(__name__)

Address = Tuple[str, int]
Resolver = Callable[[str, int], Tuple[Address, ...]]


def resolve(host: str, port: int, family: int = socket.AF_INET) -> Tuple[Address, ...]:
    """
    Resolve host to one or more (ip, port) addresses, in resolver order.

    Raises:
        ResolutionError: The lookup failed or returned nothing.
    """
    try:
        infos = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
    except (OSError, UnicodeError) as e:  # gaierror is an OSError
        raise ResolutionError(host, str(e)) from e

    addresses = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        address = (sockaddr[0], sockaddr[1])
        if address not in addresses:
            addresses.append(address)

    if not addresses:
        raise ResolutionError(host, "no addresses found")

    logger.debug(f"Resolved {host}:{port} to {len(addresses)} address(es)")
    return tuple(addresses)
