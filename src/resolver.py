"""Best-effort server name resolution for the mount unit's What= field."""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass
from enum import Enum

log = logging.getLogger(__name__)


class Provenance(Enum):
    """How the address written into What= was obtained."""

    RESOLVED = "resolved"
    ALREADY_ADDRESS = "already-address"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ResolvedHost:
    """Result of resolving a server name, never persisted."""

    name: str
    address: str
    provenance: Provenance

    @property
    def comment(self) -> str:
        """Informational comment embedded in the .mount unit."""
        if self.provenance is Provenance.RESOLVED:
            return f"Resolved {self.name} to {self.address} at script execution time."
        if self.provenance is Provenance.ALREADY_ADDRESS:
            return "Server specified as IP address."
        return f"WARNING: Could not resolve IP for {self.name} at script execution time."


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def lookup_address(host: str) -> str | None:
    """Return the first address for host, preferring IPv4, or None on failure."""
    try:
        results = socket.getaddrinfo(host, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        log.debug("getaddrinfo(%s) failed: %s", host, e)
        return None

    ipv4 = [sockaddr[0] for family, _, _, _, sockaddr in results if family == socket.AF_INET]
    ipv6 = [sockaddr[0] for family, _, _, _, sockaddr in results if family == socket.AF_INET6]
    if ipv4:
        return ipv4[0]
    if ipv6:
        return ipv6[0]
    return None


def resolve_host(host: str) -> ResolvedHost:
    """Resolve host to an address without ever failing hard.

    An unresolvable name falls back to the name itself so that shares whose
    DNS entry does not exist yet can still be configured.

    Args:
        host: Server name or IP address from //host/share

    Returns:
        ResolvedHost describing the address to use and how it was obtained
    """
    if _is_ip_address(host):
        return ResolvedHost(name=host, address=host, provenance=Provenance.ALREADY_ADDRESS)

    address = lookup_address(host)
    if address is None:
        log.warning("Could not resolve %s, using the name verbatim", host)
        return ResolvedHost(name=host, address=host, provenance=Provenance.UNRESOLVED)
    if address == host:
        return ResolvedHost(name=host, address=host, provenance=Provenance.ALREADY_ADDRESS)

    log.info("Resolved %s to %s", host, address)
    return ResolvedHost(name=host, address=address, provenance=Provenance.RESOLVED)
