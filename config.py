#!/usr/bin/env python3
"""
Configuration management for LoopHost.
Provides the settings a Hosts handle is constructed with, loadable from a
config file and environment variables.
"""

import os
import logging
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from errors import AddressBlockError
from network_utils import DEFAULT_ADDRESS_BLOCK, MAX_PREFIX_LENGTH, AddressBlock, is_macos
from allocator import DEFAULT_MAX_ATTEMPTS

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONFIG_FILE = Path.home() / ".loophost" / "config.ini"


def default_hosts_file() -> Path:
    """Return the platform's hosts file location."""
    if platform.system() == "Windows":
        system_root = os.getenv("SystemRoot", r"C:\Windows")
        return Path(system_root) / "System32" / "drivers" / "etc" / "hosts"
    return Path("/etc/hosts")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LoopHostConfig:
    """Configuration class for LoopHost."""

    hosts_file: Path = field(default_factory=default_hosts_file)
    address_block: str = DEFAULT_ADDRESS_BLOCK

    # Backup management
    backup: bool = False
    backup_suffix: str = ".loophost-old"

    # Allocation
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    manage_loopback_aliases: bool = field(default_factory=is_macos)

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @property
    def backup_file(self) -> Optional[Path]:
        if not self.backup:
            return None
        return Path(str(self.hosts_file) + self.backup_suffix)

    @classmethod
    def from_env(cls, base: Optional['LoopHostConfig'] = None) -> 'LoopHostConfig':
        """Load configuration from environment variables on top of ``base``."""
        config = base or cls()
        log_file = os.getenv("LOOPHOST_LOG_FILE")

        return cls(
            hosts_file=Path(os.getenv("LOOPHOST_HOSTS_FILE", str(config.hosts_file))),
            address_block=os.getenv("LOOPHOST_ADDRESS_BLOCK", config.address_block),
            backup=_env_bool("LOOPHOST_BACKUP", config.backup),
            backup_suffix=config.backup_suffix,
            max_attempts=int(os.getenv("LOOPHOST_MAX_ATTEMPTS", str(config.max_attempts))),
            manage_loopback_aliases=_env_bool("LOOPHOST_LOOPBACK_ALIASES", config.manage_loopback_aliases),
            log_level=os.getenv("LOOPHOST_LOG_LEVEL", config.log_level).upper(),
            log_file=Path(log_file) if log_file else config.log_file
        )

    @classmethod
    def from_file(cls, config_file: Path) -> 'LoopHostConfig':
        """Load configuration from a file (simple key=value format)."""
        config = cls()

        if not config_file.exists():
            return config

        with open(config_file, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue

                key, sep, value = line.partition('=')
                if not sep:
                    logging.warning(f"Ignoring line {line_num} in {config_file}: expected key=value")
                    continue

                key = key.strip().lower()
                value = value.strip().strip('"\'')

                try:
                    if key == 'hosts_file':
                        config.hosts_file = Path(value)
                    elif key == 'address_block':
                        config.address_block = value
                    elif key == 'backup':
                        config.backup = value.lower() in ("1", "true", "yes", "on")
                    elif key == 'backup_suffix':
                        config.backup_suffix = value
                    elif key == 'max_attempts':
                        config.max_attempts = int(value)
                    elif key == 'loopback_aliases':
                        config.manage_loopback_aliases = value.lower() in ("1", "true", "yes", "on")
                    elif key == 'log_level':
                        config.log_level = value.upper()
                    elif key == 'log_file':
                        config.log_file = Path(value) if value else None
                    else:
                        logging.warning(f"Unknown setting '{key}' in {config_file}")
                except ValueError as e:
                    logging.warning(f"Invalid value for '{key}' in {config_file}: {e}")

        return config

    def save_to_file(self, config_file: Path) -> None:
        """Save current configuration to a file."""
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            f.write("# LoopHost Configuration File\n")
            f.write("# Edit these values to customize behavior\n\n")

            f.write(f"hosts_file={self.hosts_file}\n")
            f.write(f"address_block={self.address_block}\n")
            f.write(f"backup={str(self.backup).lower()}\n")
            f.write(f"backup_suffix={self.backup_suffix}\n")
            f.write(f"max_attempts={self.max_attempts}\n")
            f.write(f"loopback_aliases={str(self.manage_loopback_aliases).lower()}\n")
            f.write(f"log_level={self.log_level}\n")
            if self.log_file:
                f.write(f"log_file={self.log_file}\n")

    def setup_logging(self, verbose: bool = False) -> None:
        """Setup logging based on configuration.

        Log output goes to stderr; stdout carries command results.
        """
        level = logging.DEBUG if verbose else getattr(logging, self.log_level.upper(), logging.WARNING)

        handlers = [logging.StreamHandler(sys.stderr)]
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.log_file))

        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers,
            force=True
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.hosts_file.parent.exists():
            issues.append(f"Hosts file directory does not exist: {self.hosts_file.parent}")

        try:
            block = AddressBlock.parse(self.address_block)
        except AddressBlockError as e:
            issues.append(f"Invalid address block: {e}")
        else:
            if block.prefix_length > MAX_PREFIX_LENGTH:
                issues.append(f"Address block too small: {self.address_block}")

        if self.max_attempts < 1:
            issues.append("max_attempts must be at least 1")

        if self.log_level not in LOG_LEVELS:
            issues.append(f"Invalid log level: {self.log_level}")

        return issues


def get_config(config_file: Path = CONFIG_FILE) -> LoopHostConfig:
    """Get configuration instance with precedence: env vars > config file > defaults."""
    config = LoopHostConfig.from_file(config_file)
    config = LoopHostConfig.from_env(config)

    issues = config.validate()
    if issues:
        logging.warning(f"Configuration issues found: {issues}")

    return config
