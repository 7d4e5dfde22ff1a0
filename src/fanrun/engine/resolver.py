"""Local host detection.

Targets naming the machine fanrun runs on are executed without
injecting the alternate credential.
"""

from __future__ import annotations

import logging
import socket
from typing import Callable, Iterable

from fanrun.engine.types import Target

logger = logging.getLogger(__name__)

LOOPBACK_NAMES = ("", ".", "localhost", "::1", "127.0.0.1")


def _reverse_names(address: str) -> list[str]:
    name, aliases, _ = socket.gethostbyaddr(address)
    return [name, *aliases]


def _own_addresses(hostname: str) -> list[str]:
    infos = socket.getaddrinfo(hostname, None)
    # sockaddr[0] is the address for both AF_INET and AF_INET6
    return sorted({info[4][0] for info in infos})


class LocalHostResolver:
    """Set of names and addresses that refer to the local machine."""

    def __init__(
            self,
            hostname: str,
            addresses: Iterable[str] = (),
            reverse_lookup: Callable[[str], Iterable[str]] | None = None,
            extra_names: Iterable[str] = (),
    ) -> None:
        names = set(LOOPBACK_NAMES)
        names.add(hostname)
        names.update(extra_names)
        addresses = list(addresses)
        names.update(addresses)

        if reverse_lookup is not None:
            for address in addresses:
                try:
                    names.update(reverse_lookup(address))
                except OSError as e:
                    logger.debug("Reverse lookup failed for %s: %s", address, e)

        self._names = frozenset(n.lower() for n in names if n is not None)

    @classmethod
    def discover(cls) -> LocalHostResolver:
        """Build the set from this machine's hostname, addresses and PTR names."""
        hostname = socket.gethostname()
        extra = []
        try:
            fqdn = socket.getfqdn()
            if fqdn:
                extra.append(fqdn)
        except OSError as e:
            logger.debug("FQDN lookup failed: %s", e)

        try:
            addresses = _own_addresses(hostname)
        except OSError as e:
            logger.debug("Address lookup failed for %s: %s", hostname, e)
            addresses = []

        resolver = cls(hostname, addresses, reverse_lookup=_reverse_names, extra_names=extra)
        logger.debug("Local host set: %s", ", ".join(sorted(resolver.names)))
        return resolver

    @property
    def names(self) -> frozenset[str]:
        return self._names

    def is_local(self, target: Target | str) -> bool:
        host = target.host if isinstance(target, Target) else target
        return host.lower() in self._names

    def __contains__(self, item: Target | str) -> bool:
        return self.is_local(item)
