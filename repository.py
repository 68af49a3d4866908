#!/usr/bin/env python3
"""
Hosts-file model for LoopHost.
Parses a hosts file into ordered entries, answers lookups, applies mapping
changes in memory and writes the result back atomically.
"""

import contextlib
import ipaddress
import logging
import os
import platform
import shutil
import stat
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from errors import FileSystemError, ParseError
from models import EntryType, HostRecord, HostsFileEntry
from validation import normalize_hostname

logger = logging.getLogger(__name__)

# Hosts files are not guaranteed to be valid UTF-8; undecodable bytes must
# survive a read/write cycle unchanged.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


class AtomicFileWriter(ABC):
    """Replaces a file's content without ever leaving it truncated."""

    newline = "\n"

    def write(self, path: Path, text: str) -> None:
        """Write ``text`` to a temporary file beside ``path`` and rename it over ``path``."""
        path = Path(path)
        if self.newline != "\n":
            text = text.replace("\n", self.newline)

        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode='w',
                delete=False,
                dir=path.parent,
                prefix='.hosts_tmp_',
                encoding=ENCODING,
                errors=ENCODING_ERRORS,
                newline=''
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())

            self.copy_attributes(path, Path(tmp_path))
            os.replace(tmp_path, path)
        except Exception:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise

    @abstractmethod
    def copy_attributes(self, target: Path, tmp_path: Path) -> None:
        """Give the temporary file the permissions of the file it replaces."""


class PosixFileWriter(AtomicFileWriter):
    """Atomic writer that keeps the target's mode, owner and group."""

    default_mode = 0o644

    def copy_attributes(self, target: Path, tmp_path: Path) -> None:
        try:
            st = os.stat(target)
        except FileNotFoundError:
            os.chmod(tmp_path, self.default_mode)
            return

        os.chmod(tmp_path, stat.S_IMODE(st.st_mode))
        try:
            os.chown(tmp_path, st.st_uid, st.st_gid)
        except PermissionError:
            # Unprivileged callers can only write files they already own.
            logger.debug(f"Could not copy ownership of {target}")


class WindowsFileWriter(AtomicFileWriter):
    """Atomic writer using CRLF line endings.

    The temporary file lives in the hosts directory, so it inherits that
    directory's ACLs.
    """

    newline = "\r\n"

    def copy_attributes(self, target: Path, tmp_path: Path) -> None:
        with contextlib.suppress(FileNotFoundError):
            shutil.copymode(target, tmp_path)


def default_writer() -> AtomicFileWriter:
    """Pick the atomic writer for the running platform."""
    if platform.system() == "Windows":
        return WindowsFileWriter()
    return PosixFileWriter()


class HostsFile:
    """In-memory representation of a hosts file."""

    def __init__(self, path, entries: Optional[List[HostsFileEntry]] = None,
                 writer: Optional[AtomicFileWriter] = None):
        self.path = Path(path)
        self.entries: List[HostsFileEntry] = entries if entries is not None else []
        self.writer = writer or default_writer()
        self.changed = False

    @classmethod
    def open(cls, path, writer: Optional[AtomicFileWriter] = None) -> 'HostsFile':
        """Read and parse the hosts file at ``path``."""
        path = Path(path)
        try:
            with open(path, 'r', encoding=ENCODING, errors=ENCODING_ERRORS) as f:
                content = f.read()
        except OSError as e:
            logger.error(f"Failed to read hosts file {path}: {e}")
            raise FileSystemError.from_os_error("open hosts file", path, e) from e

        hosts_file = cls.parse(content, path, writer)
        logger.debug(f"Loaded {len(hosts_file.entries)} entries from {path}")
        return hosts_file

    @classmethod
    def parse(cls, content: str, path, writer: Optional[AtomicFileWriter] = None) -> 'HostsFile':
        lines = content.split('\n')
        if lines and lines[-1] == '':
            lines.pop()

        entries = [HostsFileEntry.from_line(line, n) for n, line in enumerate(lines, 1)]
        for entry in entries:
            if entry.error is not None:
                logger.warning(f"Keeping malformed line in {path} unchanged: {entry.error}")

        return cls(path, entries, writer)

    @property
    def parse_errors(self) -> List[ParseError]:
        return [e.error for e in self.entries if e.error is not None]

    def _record_entries(self) -> List[HostsFileEntry]:
        return [e for e in self.entries if e.entry_type == EntryType.RECORD]

    def records(self) -> List[HostRecord]:
        """Return copies of all records that carry at least one hostname."""
        return [e.record.copy() for e in self._record_entries() if e.record.hostnames]

    def has_ip(self, address: str) -> bool:
        """True if any record with hostnames is bound to ``address``."""
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return False
        return any(record.ip == ip for record in self.records())

    def ip(self, hostname: str) -> str:
        """Return the address mapped to ``hostname``, or "" if unmapped."""
        hostname = normalize_hostname(hostname)
        for entry in self._record_entries():
            if entry.record.has_hostname(hostname):
                return str(entry.record.ip)
        return ""

    def map(self, hostname: str, address: str) -> None:
        """Bind ``hostname`` to ``address``.

        An existing binding of ``hostname`` elsewhere is left alone; callers
        check with ``ip`` first.
        """
        hostname = normalize_hostname(hostname)
        ip = ipaddress.ip_address(address)

        for entry in self._record_entries():
            if entry.record.ip == ip:
                if entry.record.add_hostname(hostname):
                    entry.dirty = True
                    self.changed = True
                return

        self.entries.append(HostsFileEntry.from_record(HostRecord(str(ip), [hostname])))
        self.changed = True

    def unmap(self, hostname: str) -> bool:
        """Remove ``hostname`` from every record; drops records left empty."""
        hostname = normalize_hostname(hostname)
        removed = False

        for entry in self._record_entries():
            if not entry.record.remove_hostname(hostname):
                continue
            removed = True
            if entry.record.hostnames:
                entry.dirty = True
            else:
                self.entries.remove(entry)

        if removed:
            self.changed = True
        return removed

    def render(self) -> str:
        return "".join(entry.render() + "\n" for entry in self.entries)

    def create_backup(self, backup_path) -> Path:
        """Copy the file on disk to ``backup_path``."""
        backup_path = Path(backup_path)
        try:
            shutil.copy2(self.path, backup_path)
        except OSError as e:
            logger.error(f"Failed to create backup {backup_path}: {e}")
            raise FileSystemError.from_os_error("create backup", backup_path, e) from e
        return backup_path

    def save(self, backup_path=None) -> bool:
        """Write pending changes back to disk; returns False if there were none."""
        if not self.changed:
            logger.debug(f"No changes to save in {self.path}")
            return False

        if backup_path is not None:
            self.create_backup(backup_path)

        try:
            self.writer.write(self.path, self.render())
        except OSError as e:
            logger.error(f"Failed to write hosts file {self.path}: {e}")
            raise FileSystemError.from_os_error("save hosts file", self.path, e) from e

        self.changed = False
        logger.info(f"Saved hosts file {self.path}")
        return True
