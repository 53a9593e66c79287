"""Local address discovery for the client agent."""

from __future__ import annotations

import logging
import socket
from ipaddress import IPv4Address, IPv6Address, ip_address

# Configure logger for this module
logger = logging.getLogger(__name__)

IPAddress = IPv4Address | IPv6Address

# Public resolvers used only to pick a route; connecting a UDP socket sends
# no packets.
PROBE_TARGETS: tuple[tuple[socket.AddressFamily, str], ...] = (
    (socket.AF_INET, "8.8.8.8"),
    (socket.AF_INET6, "2001:4860:4860::8888"),
)
PROBE_PORT = 80


def outbound_address(family: socket.AddressFamily, target: str) -> IPAddress:
    """Return the local address the host would use to reach ``target``.

    Raises:
        OSError: If there is no route for ``family``.
    """
    with socket.socket(family, socket.SOCK_DGRAM) as sock:
        sock.connect((target, PROBE_PORT))
        host = sock.getsockname()[0]
    address = ip_address(host.split("%", 1)[0])
    if address.is_unspecified or address.is_loopback:
        raise OSError(f"No outbound {family.name} address")
    return address


def my_ips() -> list[IPAddress]:
    """Return the outbound-facing addresses of this host, IPv4 first.

    Raises:
        OSError: If no address family yields an address.
    """
    addresses: list[IPAddress] = []
    for family, target in PROBE_TARGETS:
        try:
            addresses.append(outbound_address(family, target))
        except OSError as e:
            logger.debug("No %s address: %s", family.name, e)
    if not addresses:
        raise OSError("Cannot read my IP")
    return addresses
