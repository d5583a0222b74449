"""
Command-line interface for the short links store.

Usage:
    shortlinks shorten <url> --owner LOGIN
    shortlinks get <short_code>
    shortlinks list --owner LOGIN
    shortlinks clicks <short_code> <ordinal>
    shortlinks watch <short_code> [--limit N]
    shortlinks health
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Optional

from .common.logging_config import setup_logging
from .database import LinkStoreBase, ShortLink, create_store
from .errors import ShortLinkError
from .service import LinkService
from .shortcode import ShortCodeGenerator


def _link_to_json(link: ShortLink) -> dict:
    return {
        "short_code": link.short_code,
        "long_url": link.long_url,
        "owner": link.owner,
        "click_count": link.click_count,
        "created_at": link.created_at.isoformat(),
    }


def _fail(error: str) -> int:
    print(json.dumps({"success": False, "error": error}, indent=2), file=sys.stderr)
    return 1


class ShortLinksCLI:
    """Command-line interface for short links."""

    def __init__(
        self,
        store_url: str,
        verbose: bool = False,
        store: Optional[LinkStoreBase] = None,
    ):
        """Initialize CLI.

        Args:
            store_url: Link store URL
            verbose: Log at DEBUG level
            store: Optional pre-built store (skips create_store)
        """
        self.store_url = store_url
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.store = store
        self.service: Optional[LinkService] = None

    async def initialize(self):
        """Initialize store and service."""
        if self.store is None:
            self.store = create_store(self.store_url, logger=self.logger)
        self.service = LinkService(
            store=self.store,
            short_code_generator=ShortCodeGenerator(),
            logger=self.logger,
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    async def shorten(self, url: str, owner: str) -> int:
        """Create a short link."""
        try:
            link = await self.service.create_link(url, owner)
        except ShortLinkError as e:
            return _fail(str(e))

        print(json.dumps({"success": True, **_link_to_json(link)}, indent=2))
        return 0

    async def get(self, short_code: str) -> int:
        """Show one link without counting a click."""
        try:
            link = await self.service.get_link(short_code)
        except ShortLinkError as e:
            return _fail(str(e))

        if link is None:
            return _fail(f"Short code '{short_code}' not found")

        print(json.dumps({"success": True, **_link_to_json(link)}, indent=2))
        return 0

    async def list_links(self, owner: str) -> int:
        """List an owner's links."""
        try:
            links = await self.service.list_links(owner)
        except ShortLinkError as e:
            return _fail(str(e))

        print(json.dumps({
            "success": True,
            "count": len(links),
            "links": [_link_to_json(link) for link in links],
        }, indent=2))
        return 0

    async def clicks(self, short_code: str, ordinal: int) -> int:
        """Show the analytics recorded for one click."""
        try:
            event = await self.service.get_click_event(short_code, ordinal)
        except ShortLinkError as e:
            return _fail(str(e))

        if event is None:
            return _fail(f"No click #{ordinal} recorded for '{short_code}'")

        print(json.dumps({
            "success": True,
            "short_code": short_code,
            "ordinal": ordinal,
            **event.to_dict(),
        }, indent=2))
        return 0

    async def watch(self, short_code: str, limit: Optional[int] = None) -> int:
        """Print live feed events until interrupted or `limit` events."""
        try:
            if await self.service.get_link(short_code) is None:
                return _fail(f"Short code '{short_code}' not found")

            async with await self.service.open_feed(short_code) as feed:
                async for frame in feed:
                    sys.stdout.write(frame)
                    sys.stdout.flush()
                    if limit is not None and feed.events_emitted >= limit:
                        break
        except ShortLinkError as e:
            return _fail(str(e))

        return 0

    async def health(self) -> int:
        """Check store health."""
        health_status = await self.service.health_check()
        print(json.dumps({"success": True, "health": health_status}, indent=2))
        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlinks",
        description="Short links CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL
  %(prog)s shorten https://example.com/long/url --owner octocat

  # Show a link
  %(prog)s get aZ3kP9qLm2Xw

  # Follow clicks as they happen
  %(prog)s watch aZ3kP9qLm2Xw
        """
    )

    parser.add_argument(
        "--store-url",
        default=os.getenv("STORE_URL", "redis://localhost:6379/0"),
        help="Link store URL (default: from STORE_URL env or redis://localhost:6379/0)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--owner", required=True, help="Login to own the link")

    get_parser = subparsers.add_parser("get", help="Show a short link")
    get_parser.add_argument("short_code", help="Short code to lookup")

    list_parser = subparsers.add_parser("list", help="List an owner's links")
    list_parser.add_argument("--owner", required=True, help="Owner login")

    clicks_parser = subparsers.add_parser("clicks", help="Show one recorded click")
    clicks_parser.add_argument("short_code", help="Short code")
    clicks_parser.add_argument("ordinal", type=int, help="Click number, starting at 1")

    watch_parser = subparsers.add_parser("watch", help="Stream live click updates")
    watch_parser.add_argument("short_code", help="Short code to watch")
    watch_parser.add_argument("--limit", type=int, default=None, help="Stop after N events")

    subparsers.add_parser("health", help="Check store health")

    return parser


async def run(args: argparse.Namespace, store: Optional[LinkStoreBase] = None) -> int:
    cli = ShortLinksCLI(
        store_url=args.store_url,
        verbose=args.verbose,
        store=store,
    )

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.owner)
        elif args.command == "get":
            return await cli.get(args.short_code)
        elif args.command == "list":
            return await cli.list_links(args.owner)
        elif args.command == "clicks":
            return await cli.clicks(args.short_code, args.ordinal)
        elif args.command == "watch":
            return await cli.watch(args.short_code, args.limit)
        elif args.command == "health":
            return await cli.health()
        return 1
    finally:
        await cli.cleanup()


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
