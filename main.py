#!/usr/bin/env python3
"""Catalyst Center (DNAC) Inventory CLI.

This module provides a command-line interface for reading inventory from a
Cisco Catalyst Center (DNAC) controller. Results are printed as JSON or
written to a file.

Architecture:
    - DNACClient establishes the session (cached token, version gate)
    - DeviceAPI and SiteAPI compose DNACClient
    - fetch_all pages through each collection until it is exhausted

Environment Variables Required:
    - DNAC_URL: Controller base URL
    - DNAC_USER: API username
    - DNAC_PASSWORD: API password
    - DNAC_TOKEN_FILE: Token cache file (optional, default dnac_token.json)
    - DNAC_LOG_LEVEL: Console log level (optional, default INFO)

Example Usage:
    $ python main.py version                                # Show controller release
    $ python main.py devices                                # All devices as JSON
    $ python main.py devices --family "Switches and Hubs"   # Only switches
    $ python main.py sites --site-type building --output sites.json
"""
import argparse
import asyncio
import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from dotenv import load_dotenv

load_dotenv()

# Local imports
from src.dnac.api import (
    DeviceAPI,
    DeviceFamily,
    DNACClient,
    DNACConfig,
    DNACError,
    SiteAPI,
    SiteType,
    get_release_summary,
)
from src.dnac.api.logging_config import init_logging


def _json_default(value):
    """JSON encoder hook for the client's dataclasses."""
    if isinstance(value, (UUID, datetime)):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_record(item) -> dict:
    record = asdict(item)
    record.pop("raw_data", None)
    return record


def write_output(data, output_file: str = None) -> None:
    """Print JSON to stdout or save it to output_file."""
    text = json.dumps(data, indent=2, default=_json_default)

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"[Main] Saved to {output_file}")
    else:
        print(text)


async def run_devices(client: DNACClient, args: argparse.Namespace) -> int:
    family = DeviceFamily(args.family) if args.family else None
    devices = await DeviceAPI(client).fetch_all_devices(family)
    write_output([_to_record(d) for d in devices], args.output)
    return len(devices)


async def run_sites(client: DNACClient, args: argparse.Namespace) -> int:
    site_type = SiteType(args.site_type) if args.site_type else None
    sites = await SiteAPI(client).fetch_all_sites(site_type)

    records = []
    for site in sites:
        record = _to_record(site)
        record.pop("additional_info", None)
        records.append(record)

    write_output(records, args.output)
    return len(sites)


async def run_version(client: DNACClient, args: argparse.Namespace) -> int:
    summary = await get_release_summary(client)
    write_output(
        {
            "installed_version": summary.installed_version,
            "display_version": summary.display_version,
            "supported_match": client.version,
        },
        args.output,
    )
    return 1


COMMANDS = {
    "devices": run_devices,
    "sites": run_sites,
    "version": run_version,
}


async def run(args: argparse.Namespace) -> int:
    """Open a session and dispatch the selected command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code
    """
    start_time = datetime.now(timezone.utc)

    try:
        config = DNACConfig.from_env(token_file=args.token_file)
    except DNACError as e:
        print(f"[Main] Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        async with DNACClient(config) as client:
            count = await COMMANDS[args.command](client, args)
    except DNACError as e:
        print(f"[Main] {e.__class__.__name__}: {e}", file=sys.stderr)
        return 1

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    print(f"[Main] {args.command}: {count} record(s) in {duration:.1f} seconds", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Read inventory from a Catalyst Center (DNAC) controller",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py version                               # Controller release
  python main.py devices                               # All devices
  python main.py devices --family "Unified AP"         # Access points only
  python main.py sites --site-type area                # All areas
  python main.py devices --output devices.json         # Save to file
        """,
    )
    parser.add_argument(
        "--token-file",
        type=str,
        metavar="FILE",
        help="Token cache file (overrides DNAC_TOKEN_FILE)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        metavar="LEVEL",
        help="Console log level (overrides DNAC_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    devices = subparsers.add_parser("devices", help="List network devices")
    devices.add_argument(
        "--family",
        choices=[f.value for f in DeviceFamily],
        help="Only devices of this family",
    )

    sites = subparsers.add_parser("sites", help="List sites")
    sites.add_argument(
        "--site-type",
        choices=[t.value for t in SiteType],
        help="Only sites of this type",
    )

    subparsers.add_parser("version", help="Show controller release information")

    for sub in (devices, sites, subparsers.choices["version"]):
        sub.add_argument(
            "--output",
            type=str,
            metavar="FILE",
            help="Write JSON to FILE instead of stdout",
        )

    return parser


def main():
    args = build_parser().parse_args()
    init_logging(args.log_level)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
