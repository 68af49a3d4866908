#!/usr/bin/env python3
"""
LoopHost CLI tool.
Maps hostnames to random loopback addresses recorded in the hosts file and
prints the address, so it can be used inline: curl "http://$(loophost app.test)/".
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from config import get_config
from errors import CannotUnmapLocalhostError, InvalidHostnameError, LoopHostError
from loophost_logic import Hosts
from repository import HostsFile
from validation import get_validation_summary, validate_hosts_file

__version__ = "0.4.0"

PROG = "loophost"

logger = logging.getLogger(__name__)


def split_port(target: str) -> Tuple[str, str]:
    """Split ``host:port`` into ``("host", ":port")``; IPv6 literals pass through."""
    host, sep, port = target.rpartition(':')
    if sep and host and ':' not in host and port.isdigit():
        return host, sep + port
    return target, ""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Map hostnames to random loopback addresses.\n"
                    "Print IP mapped to hostname, assigning a random IP if no mapping exists.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Random free IP:   loophost
  Map hostname:     loophost app.test
  With port:        loophost app.test:8080
  Lookup only:      loophost -g app.test
  Remove mapping:   loophost -d app.test
  List mappings:    loophost -l
        """
    )

    parser.add_argument('hostname', nargs='?', default='',
                        help='hostname, optionally followed by :port')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('-g', '--get', action='store_true',
                      help='print mapped IP without creating a mapping')
    mode.add_argument('-d', '--delete', action='store_true',
                      help='delete hostname mapping')
    mode.add_argument('-l', '--list', action='store_true',
                      help='list mappings inside the address block')
    mode.add_argument('--check', action='store_true',
                      help='check the hosts file for malformed or duplicate entries')

    parser.add_argument('-e', '--echo', action='store_true',
                        help='print the hostname instead of the IP')
    parser.add_argument('-n', action='store_true', dest='no_newline',
                        help='do not output a trailing newline')
    parser.add_argument('--hosts', metavar='PATH', help='path to hosts file')
    parser.add_argument('--block', metavar='CIDR', help='address block to allocate from')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='enable verbose output')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")

    return parser


def list_command(hosts: Hosts) -> int:
    for record in hosts.records():
        print(f"{record.address}\t{' '.join(record.hostnames)}")
    return 0


def check_command(hosts_file: Path) -> int:
    issues = validate_hosts_file(HostsFile.open(hosts_file))
    for issue in issues:
        print(f"Line {issue.line_number}: {issue.level.value.upper()} - {issue.message}")
        if issue.suggestion:
            print(f"    Suggestion: {issue.suggestion}")

    summary = get_validation_summary(issues)
    print(f"{summary['errors']} errors, {summary['warnings']} warnings, {summary['info']} info")
    return 1 if summary['errors'] else 0


def run(hosts: Hosts, args) -> str:
    """Execute the requested mapping operation and return the text to print."""
    hostname, port = split_port(args.hostname)

    if not hostname:
        ip = hosts.random_ip()
    elif args.delete:
        ip = hosts.unmap(hostname)
    elif args.get:
        ip = hosts.ip(hostname)
    else:
        ip = hosts.map(hostname)

    if args.echo and hostname:
        return args.hostname
    return ip + port if ip else ""


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    if args.hosts:
        config.hosts_file = Path(args.hosts)
    if args.block:
        config.address_block = args.block
    config.setup_logging(args.verbose)

    try:
        if args.check:
            return check_command(config.hosts_file)

        hosts = Hosts(config)
        if args.list:
            return list_command(hosts)

        output = run(hosts, args)

    except InvalidHostnameError as e:
        if e.is_address:
            # Addresses already resolve; pass them through unchanged.
            output = args.hostname
        else:
            print(f"❌ {PROG}: invalid hostname: {e.hostname}", file=sys.stderr)
            logger.debug(f"{e}")
            return 1
    except CannotUnmapLocalhostError:
        print(f"❌ {PROG}: cannot remove localhost", file=sys.stderr)
        return 1
    except LoopHostError as e:
        print(f"❌ {PROG}: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(f"\n⚠️  {PROG}: operation cancelled by user.", file=sys.stderr)
        return 1

    if output:
        print(output, end='' if args.no_newline else '\n')
    return 0


if __name__ == "__main__":
    sys.exit(main())
