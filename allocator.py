#!/usr/bin/env python3
"""
Random address allocation for LoopHost.

Addresses are drawn uniformly from an address block by rejection sampling
against the addresses a hosts file already uses. Once ``max_attempts``
draws have been rejected the allocator stops guessing and picks the k-th
free address directly, so a nearly full block still terminates.
"""

import ipaddress
import logging
import secrets
from typing import Callable, Iterable, Optional, Set

from errors import BlockExhaustedError
from models import HostRecord
from network_utils import AddressBlock
from validation import LOCALHOST_IP

logger = logging.getLogger(__name__)

RandomSource = Callable[[int], int]

DEFAULT_MAX_ATTEMPTS = 1000


def secure_random(upper: int) -> int:
    """Return a cryptographically secure integer in ``[0, upper)``."""
    return secrets.randbelow(upper)


class Allocator:
    """Draws unused addresses from an address block."""

    def __init__(self, block: AddressBlock, random_source: Optional[RandomSource] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.block = block
        self.random_source = random_source or secure_random
        self.max_attempts = max_attempts

    def taken(self, records: Iterable[HostRecord]) -> Set[int]:
        """Addresses inside the block that must not be handed out."""
        taken = set()
        # Localhost may be missing from the hosts file but is never free.
        if self.block.contains(LOCALHOST_IP):
            taken.add(int(ipaddress.IPv4Address(LOCALHOST_IP)))

        for record in records:
            if self.block.contains(record.address):
                taken.add(int(record.ip))
        return taken

    def allocate(self, records: Iterable[HostRecord]) -> str:
        """Return a random address from the block not used by ``records``."""
        min_ip, max_ip = self.block.host_range()
        span = max_ip - min_ip + 1
        taken = {ip for ip in self.taken(records) if min_ip <= ip <= max_ip}

        if len(taken) >= span:
            raise BlockExhaustedError(str(self.block))

        for _ in range(self.max_attempts):
            candidate = min_ip + self.random_source(span)
            if candidate not in taken:
                return str(ipaddress.IPv4Address(candidate))

        logger.debug(f"{self.max_attempts} draws rejected in {self.block}, selecting among free addresses")
        return str(ipaddress.IPv4Address(self._nth_free(min_ip, span, taken)))

    def _nth_free(self, min_ip: int, span: int, taken: Set[int]) -> int:
        """Pick a free address uniformly by its rank among free addresses."""
        candidate = min_ip + self.random_source(span - len(taken))
        for ip in sorted(taken):
            if ip > candidate:
                break
            candidate += 1
        return candidate
