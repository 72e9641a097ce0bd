#!/usr/bin/env python3
"""
Command-line interface for the short link registry.

Usage:
    shortlinks-cli create <url> [--custom-code CODE] [--validity MINUTES] [--owner ID]
    shortlinks-cli show <code>
    shortlinks-cli list [--owner ID]
    shortlinks-cli delete <code>
    shortlinks-cli resolve <code> [--source SOURCE]
    shortlinks-cli simulate <code>
    shortlinks-cli stats
    shortlinks-cli health

The memory backend only lives as long as one command, so point the CLI at a
postgres or redis backend for anything but a dry run.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from shortlinks.config import Config, load_config
from shortlinks.lib.common.logging_config import setup_logging
from shortlinks.lib.common.validators import is_valid_short_code
from shortlinks.lib.database import create_store
from shortlinks.lib.database.models import DIRECT_SOURCE, SIMULATED_SOURCE
from shortlinks.lib.errors import CreationError, NotFoundError
from shortlinks.lib.registry import LinkRegistry
from shortlinks.lib.resolver import Expired, Redirect, resolve
from shortlinks.lib.shortcode import ShortCodeGenerator


def _print_ok(payload: dict) -> int:
    print(json.dumps({"success": True, **payload}, indent=2))
    return 0


def _print_error(message: str) -> int:
    print(json.dumps({"success": False, "error": message}, indent=2), file=sys.stderr)
    return 1


class ShortLinksCLI:
    """Command-line interface for the short link registry."""

    def __init__(self, config: Config, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.registry: Optional[LinkRegistry] = None

    async def initialize(self):
        """Initialize store and registry."""
        store = create_store(self.config, logger=self.logger)
        self.registry = LinkRegistry(
            store=store,
            short_code_generator=ShortCodeGenerator(default_length=self.config.short_code_length),
            logger=self.logger,
            enable_custom_codes=self.config.enable_custom_codes,
            max_collision_retries=self.config.max_collision_retries,
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.registry:
            await self.registry.close()

    async def create(
        self,
        url: str,
        custom_code: Optional[str] = None,
        validity: Optional[float] = None,
        owner: Optional[str] = None,
    ) -> int:
        """Create a short link."""
        if custom_code:
            is_valid, error = is_valid_short_code(custom_code)
            if not is_valid:
                return _print_error(f"Invalid short code: {error}")

        if validity is None:
            validity = self.config.default_validity_minutes

        try:
            record = await self.registry.create(
                destination=url,
                validity_minutes=validity,
                requested_code=custom_code,
                owner=owner,
            )
        except CreationError as e:
            return _print_error(str(e))

        return _print_ok({
            "link": record.to_dict(include_clicks=False),
            "message": f"Created short link: {record.code}",
        })

    async def show(self, code: str) -> int:
        """Show a link with its click history."""
        try:
            record = await self.registry.get_detail(code)
        except NotFoundError as e:
            return _print_error(str(e))
        return _print_ok({"link": record.to_dict()})

    async def list_links(self, owner: Optional[str] = None) -> int:
        """List links, newest first."""
        records = await self.registry.list(owner=owner)
        return _print_ok({
            "count": len(records),
            "links": [r.to_dict(include_clicks=False) for r in records],
        })

    async def delete(self, code: str) -> int:
        """Delete a link."""
        try:
            await self.registry.delete(code)
        except NotFoundError as e:
            return _print_error(str(e))
        return _print_ok({"message": f"Deleted short link: {code}"})

    async def resolve(self, code: str, source: str) -> int:
        """Resolve a code, recording a click when it is live."""
        outcome = await resolve(self.registry, code, source, self.registry.clock(), log=self.logger)

        payload = {"outcome": outcome.outcome, "code": code}
        if isinstance(outcome, Redirect):
            payload["destination"] = outcome.destination
            return _print_ok(payload)
        if isinstance(outcome, Expired):
            payload["expires_at"] = outcome.expires_at.isoformat()
        print(json.dumps({"success": False, **payload}, indent=2), file=sys.stderr)
        return 1

    async def stats(self) -> int:
        """Print registry statistics."""
        stats = await self.registry.get_statistics(self.registry.clock())
        return _print_ok({"statistics": stats})

    async def health(self) -> int:
        """Check storage health."""
        health_status = await self.registry.health_check()
        print(json.dumps({"success": health_status["overall"], "health": health_status}, indent=2))
        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Short link registry CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a link valid for one hour
  %(prog)s create https://example.com/long/url --validity 60

  # Create with custom code
  %(prog)s create https://example.com/long/url --custom-code mylink

  # Show a link and its clicks
  %(prog)s show mylink

  # Simulate a visit
  %(prog)s simulate mylink
        """
    )

    parser.add_argument(
        "--backend",
        choices=["memory", "postgres", "redis"],
        help="Storage backend (default: from STORAGE_BACKEND env)"
    )
    parser.add_argument(
        "--db-url",
        help="PostgreSQL connection URL (default: from DATABASE_URL env)"
    )
    parser.add_argument(
        "--redis-url",
        help="Redis connection URL (default: from REDIS_URL env)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    create_parser = subparsers.add_parser("create", help="Create a short link")
    create_parser.add_argument("url", help="Destination URL")
    create_parser.add_argument("--custom-code", help="Custom short code")
    create_parser.add_argument("--validity", type=float, help="Validity in minutes")
    create_parser.add_argument("--owner", help="Creator identity")

    show_parser = subparsers.add_parser("show", help="Show a link and its clicks")
    show_parser.add_argument("code", help="Short code")

    list_parser = subparsers.add_parser("list", help="List links, newest first")
    list_parser.add_argument("--owner", help="Only links created by this identity")

    delete_parser = subparsers.add_parser("delete", help="Delete a link")
    delete_parser.add_argument("code", help="Short code")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a code")
    resolve_parser.add_argument("code", help="Short code")
    resolve_parser.add_argument("--source", default=DIRECT_SOURCE, help="Click source to record")

    simulate_parser = subparsers.add_parser("simulate", help="Simulate a click")
    simulate_parser.add_argument("code", help="Short code")

    subparsers.add_parser("stats", help="Show registry statistics")
    subparsers.add_parser("health", help="Check storage health")

    return parser


async def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    overrides = {}
    if args.backend:
        overrides["storage_backend"] = args.backend
    if args.db_url:
        overrides["database_url"] = args.db_url
    if args.redis_url:
        overrides["redis_url"] = args.redis_url
    config = load_config().model_copy(update=overrides)

    cli = ShortLinksCLI(config, verbose=args.verbose)

    try:
        await cli.initialize()
    except ValueError as e:
        return _print_error(str(e))

    try:
        if args.command == "create":
            return await cli.create(args.url, args.custom_code, args.validity, args.owner)
        elif args.command == "show":
            return await cli.show(args.code)
        elif args.command == "list":
            return await cli.list_links(args.owner)
        elif args.command == "delete":
            return await cli.delete(args.code)
        elif args.command == "resolve":
            return await cli.resolve(args.code, args.source)
        elif args.command == "simulate":
            return await cli.resolve(args.code, SIMULATED_SOURCE)
        elif args.command == "stats":
            return await cli.stats()
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1
    finally:
        await cli.cleanup()


def run():
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
