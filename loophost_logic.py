#!/usr/bin/env python3
"""
Mapping operations for LoopHost.

``Hosts`` maps hostnames to random loopback addresses recorded in a hosts
file. Each operation opens the file, works on it in memory and writes it
back only if something changed, so no state is kept between calls.
"""

import logging
from typing import List, Optional

from allocator import Allocator, RandomSource
from config import LoopHostConfig
from errors import CannotUnmapLocalhostError
from models import HostRecord
from network_utils import AddressBlock, LoopbackAliases
from repository import AtomicFileWriter, HostsFile
from validation import LOCALHOST_IP, is_reserved_hostname, normalize_hostname

logger = logging.getLogger(__name__)


class Hosts:
    """Maps hostnames to unassigned random addresses in an address block."""

    def __init__(self, config: Optional[LoopHostConfig] = None,
                 random_source: Optional[RandomSource] = None,
                 writer: Optional[AtomicFileWriter] = None,
                 aliases: Optional[LoopbackAliases] = None):
        self.config = config or LoopHostConfig()
        self.block = AddressBlock.parse(self.config.address_block)
        self.allocator = Allocator(self.block, random_source, self.config.max_attempts)
        self.writer = writer
        self.aliases = aliases
        if self.aliases is None and self.config.manage_loopback_aliases:
            self.aliases = LoopbackAliases()
        self.changed = False

    @property
    def filename(self):
        return self.config.hosts_file

    def _open(self) -> HostsFile:
        self.changed = False
        return HostsFile.open(self.config.hosts_file, self.writer)

    def _save(self, hosts_file: HostsFile) -> None:
        if not self.changed:
            return
        hosts_file.save(self.config.backup_file)
        self.changed = False

    def random_ip(self) -> str:
        """Return a random unassigned address without recording it."""
        hosts_file = self._open()
        return self.allocator.allocate(hosts_file.records())

    def map(self, hostname: str) -> str:
        """Return the address mapped to ``hostname``, assigning one if needed."""
        canonical = normalize_hostname(hostname)
        if is_reserved_hostname(canonical):
            return LOCALHOST_IP

        hosts_file = self._open()
        ip = hosts_file.ip(canonical)
        if ip:
            logger.debug(f"{canonical} already mapped to {ip}")
            self._ensure_alias(ip)
            return ip

        ip = self.allocator.allocate(hosts_file.records())
        hosts_file.map(canonical, ip)
        self.changed = True
        self._save(hosts_file)
        logger.info(f"Mapped {canonical} to {ip}")

        self._ensure_alias(ip)
        return ip

    def unmap(self, hostname: str) -> str:
        """Remove the mapping for ``hostname`` and return its address.

        Returns "" when nothing was mapped.
        """
        canonical = normalize_hostname(hostname)
        if is_reserved_hostname(canonical):
            raise CannotUnmapLocalhostError(hostname)

        hosts_file = self._open()
        ip = hosts_file.ip(canonical)
        if not ip:
            return ""

        hosts_file.unmap(canonical)
        self.changed = True
        self._save(hosts_file)
        logger.info(f"Unmapped {canonical} from {ip}")

        if self.aliases is not None and not hosts_file.has_ip(ip):
            self.aliases.delete(ip)
        return ip

    def ip(self, hostname: str) -> str:
        """Return the address mapped to ``hostname``, or "" if unmapped."""
        canonical = normalize_hostname(hostname)
        if is_reserved_hostname(canonical):
            return LOCALHOST_IP

        ip = self._open().ip(canonical)
        # Aliases do not survive a reboot; restore them on lookup.
        self._ensure_alias(ip)
        return ip

    def records(self) -> List[HostRecord]:
        """Return the records whose address lies in the address block."""
        return [r for r in self._open().records() if self.block.contains(r.address)]

    def _ensure_alias(self, ip: str) -> None:
        if ip and self.aliases is not None:
            self.aliases.create(ip)

    # set/get/remove spellings of the same operations.
    set = map
    remove = unmap
    get_ip = ip
