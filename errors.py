#!/usr/bin/env python3
"""
Exception types raised by the LoopHost engine.
Every error carries enough context (path, line, hostname, block) for the
CLI or GUI to present it without re-deriving anything.
"""

import errno
from enum import Enum
from typing import Optional


class LoopHostError(Exception):
    """Base class for all LoopHost errors."""


class FileErrorKind(Enum):
    """Classification of file-system failures."""
    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    IO_ERROR = "io-error"


class FileSystemError(LoopHostError):
    """A hosts file could not be read or written."""

    def __init__(self, kind: FileErrorKind, path: str, message: str):
        self.kind = kind
        self.path = str(path)
        self.message = message
        super().__init__(f"{message}: {self.path}")

    @classmethod
    def from_os_error(cls, action: str, path, error: OSError) -> 'FileSystemError':
        """Wrap an OSError raised while performing ``action`` on ``path``."""
        if isinstance(error, FileNotFoundError) or error.errno == errno.ENOENT:
            kind = FileErrorKind.NOT_FOUND
        elif isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
            kind = FileErrorKind.PERMISSION_DENIED
        else:
            kind = FileErrorKind.IO_ERROR

        reason = error.strerror or str(error)
        return cls(kind, path, f"{action}: {reason}")


class ParseError(LoopHostError):
    """A hosts-file line whose address field is malformed.

    Collected while opening a hosts file rather than raised; the offending
    line is kept verbatim.
    """

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}: {line.strip()!r}")


class HostnameProblem(Enum):
    """Why a hostname was rejected."""
    EMPTY = "hostname is empty"
    IS_ADDRESS = "hostname is an IP address"
    INVALID_CHARACTERS = "hostname contains invalid characters"


class InvalidHostnameError(LoopHostError, ValueError):
    """A hostname failed validation or IDNA conversion."""

    def __init__(self, hostname: str, problem: HostnameProblem, detail: Optional[str] = None):
        self.hostname = hostname
        self.problem = problem
        self.detail = detail

        msg = f"invalid hostname {hostname!r}: {problem.value}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)

    @property
    def is_address(self) -> bool:
        return self.problem is HostnameProblem.IS_ADDRESS


class CannotUnmapLocalhostError(LoopHostError):
    """Refusal to remove the reserved localhost mapping."""

    def __init__(self, hostname: str = "localhost"):
        self.hostname = hostname
        super().__init__(f"cannot remove {hostname}")


class AddressBlockError(LoopHostError, ValueError):
    """An address block is not a usable IPv4 CIDR block."""

    def __init__(self, block: str, reason: str):
        self.block = block
        self.reason = reason
        super().__init__(f"{reason}: {block}")


class BlockTooSmallError(AddressBlockError):
    """The block has fewer than four addresses."""

    def __init__(self, block: str):
        super().__init__(block, "address block too small")


class BlockExhaustedError(AddressBlockError):
    """Every usable address in the block is already assigned."""

    def __init__(self, block: str):
        super().__init__(block, "no unassigned addresses in address block")


class LoopbackAliasError(LoopHostError):
    """The loopback interface alias could not be created or removed."""

    def __init__(self, ip: str, output: str):
        self.ip = ip
        self.output = output
        super().__init__(f"failed to update loopback alias {ip}: {output.strip()}")
