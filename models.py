#!/usr/bin/env python3
"""
Data models for LoopHost.
Represents hosts-file lines and the address-to-hostnames records they hold.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from errors import ParseError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class EntryType(Enum):
    """Types of entries in hosts file."""
    RECORD = "record"
    COMMENT = "comment"
    BLANK = "blank"
    INVALID = "invalid"


@dataclass
class HostRecord:
    """One address and the hostnames bound to it."""

    address: str
    hostnames: List[str] = field(default_factory=list)
    comment: Optional[str] = None

    @property
    def ip(self) -> IPAddress:
        return ipaddress.ip_address(self.address)

    def has_hostname(self, hostname: str) -> bool:
        """Case-insensitive membership test."""
        hostname = hostname.lower()
        return any(name.lower() == hostname for name in self.hostnames)

    def add_hostname(self, hostname: str) -> bool:
        if self.has_hostname(hostname):
            return False
        self.hostnames.append(hostname)
        return True

    def remove_hostname(self, hostname: str) -> bool:
        """Drop every spelling of ``hostname``; returns True if any was present."""
        hostname = hostname.lower()
        kept = [name for name in self.hostnames if name.lower() != hostname]
        removed = len(kept) != len(self.hostnames)
        self.hostnames = kept
        return removed

    def copy(self) -> 'HostRecord':
        return HostRecord(self.address, list(self.hostnames), self.comment)

    def to_line(self) -> str:
        """Convert record back to hosts file line format."""
        line = " ".join([self.address] + self.hostnames)
        if self.comment:
            line += f" # {self.comment}"
        return line

    def __str__(self) -> str:
        return f"{self.address} -> {' '.join(self.hostnames)}"


@dataclass
class HostsFileEntry:
    """Represents any line in the hosts file.

    ``content`` is the line exactly as read (without its line ending). It is
    written back untouched unless the entry's record has been modified.
    """

    content: str
    line_number: Optional[int]
    entry_type: EntryType
    record: Optional[HostRecord] = None
    error: Optional[ParseError] = None
    dirty: bool = False

    @classmethod
    def from_line(cls, line: str, line_number: int) -> 'HostsFileEntry':
        """Create entry from hosts file line."""
        stripped = line.strip()

        if not stripped:
            return cls(line, line_number, EntryType.BLANK)
        if stripped.startswith('#'):
            return cls(line, line_number, EntryType.COMMENT)

        content, _, comment = stripped.partition('#')
        tokens = content.split()
        address = tokens[0]

        try:
            ipaddress.ip_address(address)
        except ValueError:
            error = ParseError(line_number, line, f"invalid address {address!r}")
            return cls(line, line_number, EntryType.INVALID, error=error)

        record = HostRecord(address, tokens[1:], comment.strip() or None)
        return cls(line, line_number, EntryType.RECORD, record)

    @classmethod
    def from_record(cls, record: HostRecord) -> 'HostsFileEntry':
        """Create a new, not yet persisted, record entry."""
        return cls(record.to_line(), None, EntryType.RECORD, record, dirty=True)

    def render(self) -> str:
        if self.dirty and self.record is not None:
            return self.record.to_line()
        return self.content
