#!/usr/bin/env python3
"""
Network utilities for LoopHost.
Provides IPv4 address-block arithmetic and loopback interface alias
management (needed on macOS, where only 127.0.0.1 answers by default).
"""

import ipaddress
import logging
import platform
import re
import subprocess
from dataclasses import dataclass
from typing import List, Tuple, Union

from errors import AddressBlockError, BlockTooSmallError, LoopbackAliasError

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS_BLOCK = "127.0.0.0/8"

# A block needs room for its network and broadcast addresses plus at least
# two candidates, one of which may be localhost.
MAX_PREFIX_LENGTH = 30


@dataclass(frozen=True)
class AddressBlock:
    """An IPv4 CIDR block eligible for allocation."""

    network: ipaddress.IPv4Address
    prefix_length: int

    @classmethod
    def parse(cls, block: str) -> 'AddressBlock':
        """Parse ``a.b.c.d/n``; host bits are masked off."""
        text = block.strip()
        if '/' not in text:
            raise AddressBlockError(block, "invalid CIDR address")

        try:
            network = ipaddress.ip_network(text, strict=False)
        except ValueError:
            raise AddressBlockError(block, "invalid CIDR address") from None

        if network.version != 4:
            raise AddressBlockError(block, "address block must be IPv4")

        return cls(network.network_address, network.prefixlen)

    @property
    def size(self) -> int:
        """Total number of addresses in the block."""
        return 2 ** (32 - self.prefix_length)

    def contains(self, address: Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address]) -> bool:
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return False
        if ip.version != 4:
            return False
        first = int(self.network)
        return first <= int(ip) < first + self.size

    def host_range(self) -> Tuple[int, int]:
        """Return the smallest and largest allocatable address as integers.

        The network and broadcast addresses are excluded.
        """
        if self.prefix_length > MAX_PREFIX_LENGTH:
            raise BlockTooSmallError(str(self))

        min_ip = int(self.network) + 1
        max_ip = min_ip + self.size - 3
        return min_ip, max_ip

    def __str__(self) -> str:
        return f"{self.network}/{self.prefix_length}"


def is_macos() -> bool:
    return platform.system() == "Darwin"


class LoopbackAliases:
    """Create and remove loopback interface aliases with ``ifconfig``."""

    def __init__(self, interface: str = "lo0"):
        self.interface = interface

    @staticmethod
    def applies_to(ip: str) -> bool:
        """Only extra IPv4 loopback addresses need an alias."""
        try:
            address = ipaddress.ip_address(ip)
        except ValueError:
            return False
        return address.version == 4 and address.is_loopback and ip != "127.0.0.1"

    def aliases(self) -> List[str]:
        """List IPv4 addresses currently configured on the interface."""
        output = self._run(["ifconfig", self.interface], self.interface)
        return re.findall(r'inet (\d+\.\d+\.\d+\.\d+)', output)

    def create(self, ip: str) -> bool:
        """Add ``ip`` to the interface unless it is already there."""
        if not self.applies_to(ip) or ip in self.aliases():
            return False

        self._run(["ifconfig", self.interface, "alias", ip, "up"], ip)
        logger.info(f"Created loopback alias {ip} on {self.interface}")
        return True

    def delete(self, ip: str) -> bool:
        if not self.applies_to(ip) or ip not in self.aliases():
            return False

        self._run(["ifconfig", self.interface, "-alias", ip], ip)
        logger.info(f"Deleted loopback alias {ip} from {self.interface}")
        return True

    @staticmethod
    def _run(cmd: List[str], subject: str) -> str:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {' '.join(cmd)}")
            raise LoopbackAliasError(subject, e.stderr or e.stdout or str(e)) from e
        except FileNotFoundError as e:
            raise LoopbackAliasError(subject, str(e)) from e
        return result.stdout
