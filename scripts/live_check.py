#!/usr/bin/env python3
"""
MCP Tool Live Check

Runs the content cache tool surface against a live GraphQL endpoint using a
throwaway in-memory store and queue, so nothing on disk is touched.

Phases:
- Connectivity (ping)
- Snapshot pull and reads
- Queue listing and flush
- Optional write round trip (--write-post-id), which re-saves a post title
  unchanged
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field

import mcp.types as types
from dotenv import load_dotenv

from content_cache import __version__ as PACKAGE_VERSION
from content_cache.config import load_config
from content_cache.logger import setup_logging
from content_cache.mcp.lifespan import build_coordinator
from content_cache.mcp.tools import ALL_SPECS
from content_cache.mcp.tools.registry import ToolRegistry
from content_cache.sync.coordinator import SyncCoordinator

logger = logging.getLogger("live_check")


@dataclass
class CheckResult:
    """Result of a single check"""

    tool: str
    check_name: str
    passed: bool
    response: str = ""
    structured_content: dict | None = None


@dataclass
class CheckReport:
    results: list[CheckResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)


class LiveChecker:
    def __init__(self, coordinator: SyncCoordinator, verbose: bool = False):
        self.coordinator = coordinator
        self.registry = ToolRegistry(ALL_SPECS)
        self.verbose = verbose
        self.report = CheckReport()

    async def _call(
        self, tool: str, check_name: str, arguments: dict | None = None
    ) -> types.CallToolResult:
        result = await self.registry.call_tool(tool, arguments, self.coordinator)
        text = "\n".join(
            c.text for c in result.content if isinstance(c, types.TextContent)
        )
        check = CheckResult(
            tool=tool,
            check_name=check_name,
            passed=not result.isError,
            response=text,
            structured_content=result.structuredContent,
        )
        self.report.results.append(check)
        print(f"  [{'PASS' if check.passed else 'FAIL'}] {tool}.{check_name}")
        if self.verbose or not check.passed:
            for line in text.splitlines()[:6]:
                print(f"         {line}")
        return result

    async def run(self, write_post_id: int | None = None) -> bool:
        print("\n=== Phase 1: Connectivity ===")
        ping = await self._call("ping", "reachable")
        if ping.isError:
            print("\nRemote unreachable; skipping remaining phases.")
            return False

        print("\n=== Phase 2: Snapshot ===")
        await self._call("content_pull", "full_snapshot")
        await self._call("content_read", "summary")
        await self._call("content_read", "posts", {"collection": "posts"})

        if write_post_id is not None:
            print("\n=== Phase 3: Write ===")
            post = await self._call(
                "content_read",
                "post_before_write",
                {"collection": "posts", "id": write_post_id},
            )
            if not post.isError:
                title = post.structuredContent["record"].get("title", "")
                await self._call(
                    "content_write",
                    "resave_title",
                    {
                        "operation": "updatePost",
                        "input": {"id": write_post_id, "title": title},
                    },
                )

        print("\n=== Phase 4: Queue ===")
        await self._call("queue_list", "list")
        await self._call("queue_flush", "flush_empty")
        await self._call("cache_status", "status")
        return self.report.failed == 0


async def async_main(args) -> int:
    print(f"\nContent cache live check (content-cache-mcp {PACKAGE_VERSION})\n")
    load_dotenv()
    try:
        config = load_config(
            url=args.url, token=args.token, mode="SETMODE", backend="MEMORYDB"
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    if not config.graphql_url:
        print("Set CONTENT_CACHE_GRAPHQL_URL or pass --url", file=sys.stderr)
        return 1
    config.queue_path = None

    checker = LiveChecker(build_coordinator(config), verbose=args.verbose)
    success = await checker.run(write_post_id=args.write_post_id)

    report = checker.report
    print(f"\nTotal: {report.total} | Failed: {report.failed}")
    return 0 if success else 1


def main():
    parser = argparse.ArgumentParser(
        description="Run the MCP tool surface against a live GraphQL endpoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --url https://cms.example.com/graphql
  %(prog)s --write-post-id 42 --verbose
        """,
    )
    parser.add_argument("--url", help="Override GraphQL endpoint")
    parser.add_argument("--token", help="Override bearer token")
    parser.add_argument(
        "--write-post-id",
        type=int,
        help="Re-save this post's title to exercise content_write",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--log-file", help="Also log to this file")
    args = parser.parse_args()

    setup_logging(mode="cli", log_file=args.log_file)
    sys.exit(asyncio.run(async_main(args)))


if __name__ == "__main__":
    main()
