#!/usr/bin/env python3
"""
Hostname normalization and hosts-file checks for LoopHost.

Hostnames are converted to their IDNA ASCII form (UTS #46 mapping with STD3
rules) before they are compared or stored, so ``Hello世界`` and
``xn--hello-ck1hg65u`` name the same mapping.
"""

import ipaddress
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

import idna

from errors import HostnameProblem, InvalidHostnameError
from models import EntryType

logger = logging.getLogger(__name__)

LOCALHOST_IP = "127.0.0.1"
RESERVED_HOSTNAMES = frozenset(["localhost", "localhost.localdomain"])


def is_ip_literal(value: str) -> bool:
    """True if ``value`` parses as an IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def normalize_hostname(hostname: str) -> str:
    """Validate ``hostname`` and return its canonical ASCII form."""
    if not hostname:
        raise InvalidHostnameError(hostname, HostnameProblem.EMPTY)

    if is_ip_literal(hostname):
        raise InvalidHostnameError(hostname, HostnameProblem.IS_ADDRESS)

    try:
        canonical = idna.encode(hostname, uts46=True, std3_rules=True)
    except idna.IDNAError as e:
        raise InvalidHostnameError(hostname, HostnameProblem.INVALID_CHARACTERS, str(e)) from e

    return canonical.decode("ascii")


def is_reserved_hostname(hostname: str) -> bool:
    """True for localhost names, whose mapping is never modified."""
    return hostname.rstrip('.').lower() in RESERVED_HOSTNAMES


class ValidationLevel(Enum):
    """Validation levels for different types of checks."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationIssue:
    """Represents a validation issue found in the hosts file."""
    line_number: int
    line_content: str
    level: ValidationLevel
    message: str
    suggestion: Optional[str] = None


class HostsValidator:
    """Checks a parsed hosts file for malformed lines and duplicate mappings."""

    def __init__(self):
        self.issues: List[ValidationIssue] = []
        self.address_lines: Dict[str, List[int]] = {}
        self.hostname_lines: Dict[str, List[int]] = {}

    def validate(self, hosts_file) -> List[ValidationIssue]:
        self.issues.clear()
        self.address_lines.clear()
        self.hostname_lines.clear()

        for entry in hosts_file.entries:
            if entry.entry_type == EntryType.INVALID:
                self.issues.append(ValidationIssue(
                    line_number=entry.line_number,
                    line_content=entry.content,
                    level=ValidationLevel.ERROR,
                    message=entry.error.reason,
                    suggestion="Format should be: IP_ADDRESS HOSTNAME [HOSTNAME2 ...]"
                ))
            elif entry.entry_type == EntryType.RECORD and entry.line_number is not None:
                self._track(entry)

        self._check_duplicates()
        return sorted(self.issues, key=lambda x: (x.line_number, x.level.value))

    def _track(self, entry):
        record = entry.record
        if not record.hostnames:
            self.issues.append(ValidationIssue(
                line_number=entry.line_number,
                line_content=entry.content,
                level=ValidationLevel.INFO,
                message=f"Address {record.address} has no hostnames",
                suggestion="Add a hostname or remove the line"
            ))
            return

        self.address_lines.setdefault(str(record.ip), []).append(entry.line_number)
        for hostname in record.hostnames:
            self.hostname_lines.setdefault(hostname.lower(), []).append(entry.line_number)

    def _check_duplicates(self):
        for address, line_numbers in self.address_lines.items():
            if len(line_numbers) > 1:
                self.issues.append(ValidationIssue(
                    line_number=line_numbers[0],
                    line_content=f"IP {address}",
                    level=ValidationLevel.WARNING,
                    message=f"Duplicate IP address '{address}' found on lines {', '.join(map(str, line_numbers))}",
                    suggestion="Consider consolidating hostnames under a single entry"
                ))

        for hostname, line_numbers in self.hostname_lines.items():
            if len(line_numbers) > 1:
                self.issues.append(ValidationIssue(
                    line_number=line_numbers[0],
                    line_content=f"Hostname {hostname}",
                    level=ValidationLevel.ERROR,
                    message=f"Duplicate hostname '{hostname}' found on lines {', '.join(map(str, line_numbers))}",
                    suggestion="Remove duplicate entries - only the first occurrence will be used"
                ))


def validate_hosts_file(hosts_file) -> List[ValidationIssue]:
    """Convenience function to validate a parsed hosts file."""
    return HostsValidator().validate(hosts_file)


def get_validation_summary(issues: List[ValidationIssue]) -> Dict[str, int]:
    """Get a summary of validation issues by type."""
    summary = {
        'errors': 0,
        'warnings': 0,
        'info': 0
    }

    for issue in issues:
        if issue.level == ValidationLevel.ERROR:
            summary['errors'] += 1
        elif issue.level == ValidationLevel.WARNING:
            summary['warnings'] += 1
        elif issue.level == ValidationLevel.INFO:
            summary['info'] += 1

    return summary
