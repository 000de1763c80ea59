"""
Command-line interface for the resolution library.

This module provides the CLI entry point with commands for:
- resolve: Show addresses and meta information of a domain
- address: Resolve a single currency address
- owner: Show the owner of a domain
- record: Read a raw record key
- dns: Show DNS records stored for a domain
- namehash: Print the namehash of a domain
- config: Configuration management
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import (
    ResolutionConfig,
    config_to_dict,
    load_config_from_env,
    load_config_from_file,
    save_config_to_file,
)
from .enums import DnsRecordType, LogLevel
from .exceptions import ConfigurationError, ResolutionLibError
from .resolution import Resolution

DEFAULT_CONFIG_PATH = Path.home() / ".chain_resolution" / "config.json"


def _load_config(args: argparse.Namespace) -> Optional[ResolutionConfig]:
    if getattr(args, "config", None):
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Configuration file not found: {config_path}", file=sys.stderr)
            return None
        return load_config_from_file(config_path)
    return load_config_from_env()


def _build_resolution(args: argparse.Namespace) -> Optional[Resolution]:
    config = _load_config(args)
    if config is None:
        return None
    logger = None
    if args.verbose:
        logger = AuditLogger(
            output_format=config.logging.output_format,
            level=LogLevel.DEBUG,
        )
    try:
        return Resolution.from_config(config, logger=logger)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return None


def _print(args: argparse.Namespace, value) -> None:
    if args.json:
        print(json.dumps(value, indent=2, ensure_ascii=False))
    elif isinstance(value, dict):
        for key, item in value.items():
            print(f"{key}: {item}")
    elif isinstance(value, list):
        for item in value:
            print(item)
    else:
        print(value)


async def _run_lookup(args: argparse.Namespace) -> int:
    resolution = _build_resolution(args)
    if resolution is None:
        return 1

    try:
        if args.command == "resolve":
            response = await resolution.resolve(args.domain)
            _print(args, response.to_dict())
        elif args.command == "address":
            _print(args, await resolution.address_or_throw(args.domain, args.currency))
        elif args.command == "owner":
            owner = await resolution.owner(args.domain)
            if owner is None:
                print(f"{args.domain} has no owner", file=sys.stderr)
                return 1
            _print(args, owner)
        elif args.command == "record":
            _print(args, await resolution.record(args.domain, args.key))
        elif args.command == "dns":
            types = args.types or [
                DnsRecordType.A,
                DnsRecordType.AAAA,
            ]
            records = await resolution.dns(args.domain, types)
            if args.json:
                _print(args, [record.to_dict() for record in records])
            else:
                for record in records:
                    print(f"{record.type.value}\t{record.TTL}\t{record.data}")
        else:
            return 1
    except ResolutionLibError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    return asyncio.run(_run_lookup(args))


def cmd_namehash(args: argparse.Namespace) -> int:
    resolution = _build_resolution(args)
    if resolution is None:
        return 1
    try:
        _print(args, resolution.namehash(args.domain))
    except ResolutionLibError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "init":
        if config_path.exists() and not args.force:
            print(
                f"Configuration already exists at {config_path} (use --force to overwrite)",
                file=sys.stderr,
            )
            return 1
        if save_config_to_file(ResolutionConfig(), config_path):
            print(f"Configuration written to {config_path}")
            return 0
        return 1

    if args.action == "show":
        config = load_config_from_file(config_path) if config_path.exists() else load_config_from_env()
        if config is None:
            return 1
        print(json.dumps(config_to_dict(config), indent=2))
        return 0

    if args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Configuration at {config_path} is invalid or missing.", file=sys.stderr)
            return 1
        try:
            Resolution.from_config(config)
        except ResolutionLibError as e:
            print(f"Configuration at {config_path} is invalid: {e.message}", file=sys.stderr)
            return 1
        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def _record_type(value: str) -> DnsRecordType:
    try:
        return DnsRecordType(value.upper())
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown DNS record type: {value}") from None


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file (defaults to RESOLUTION_* environment)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON output",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log routing and transport details to stderr",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="chain-resolution",
        description="Resolve blockchain domain names to addresses and records",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a domain")
    resolve_parser.add_argument("domain", help="Domain to resolve (e.g., brad.crypto)")
    _add_common(resolve_parser)
    resolve_parser.set_defaults(func=cmd_lookup)

    address_parser = subparsers.add_parser("address", help="Resolve a currency address")
    address_parser.add_argument("domain", help="Domain to resolve")
    address_parser.add_argument("currency", help="Currency ticker (e.g., BTC, ETH)")
    _add_common(address_parser)
    address_parser.set_defaults(func=cmd_lookup)

    owner_parser = subparsers.add_parser("owner", help="Show the owner of a domain")
    owner_parser.add_argument("domain", help="Domain to look up")
    _add_common(owner_parser)
    owner_parser.set_defaults(func=cmd_lookup)

    record_parser = subparsers.add_parser("record", help="Read a raw record")
    record_parser.add_argument("domain", help="Domain to look up")
    record_parser.add_argument("key", help="Record key (e.g., ipfs.html.value)")
    _add_common(record_parser)
    record_parser.set_defaults(func=cmd_lookup)

    dns_parser = subparsers.add_parser("dns", help="Show DNS records of a domain")
    dns_parser.add_argument("domain", help="Domain to look up")
    dns_parser.add_argument(
        "types",
        nargs="*",
        type=_record_type,
        metavar="TYPE",
        help="Record types (default: A AAAA)",
    )
    _add_common(dns_parser)
    dns_parser.set_defaults(func=cmd_lookup)

    namehash_parser = subparsers.add_parser("namehash", help="Print the namehash of a domain")
    namehash_parser.add_argument("domain", help="Domain to hash")
    _add_common(namehash_parser)
    namehash_parser.set_defaults(func=cmd_namehash)

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
