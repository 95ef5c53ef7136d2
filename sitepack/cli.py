"""CLI entry point for SitePack.

This CLI intentionally avoids third-party CLI frameworks so the server stays
easy to run under a bare process manager.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .config import HOST, LOG_LEVEL, PORT, SITE_ROOT
from .logging_utils import init_logging


def app(argv: list[str] | None = None) -> None:
    """Console script entrypoint."""
    raise SystemExit(main(argv))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sitepack",
        description="Minify, inline, precompress and serve a small static site.",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"SitePack {__version__}",
    )
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default: INFO)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_serve = sub.add_parser("serve", help="Build the site and serve it")
    p_serve.add_argument("--root", "-r", type=Path, default=SITE_ROOT, help="Site directory")
    p_serve.add_argument("--host", default=HOST, help="Listen address")
    p_serve.add_argument("--port", "-p", type=int, default=PORT, help="Listen port")

    p_build = sub.add_parser("build", help="Build the site and print the size report")
    p_build.add_argument("--root", "-r", type=Path, default=SITE_ROOT, help="Site directory")

    p_csp = sub.add_parser("csp", help="Print the Content-Security-Policy for the site")
    p_csp.add_argument("--root", "-r", type=Path, default=SITE_ROOT, help="Site directory")

    args = parser.parse_args(argv)

    try:
        init_logging(args.log_level)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.cmd == "serve":
        return _cmd_serve(args)
    if args.cmd == "build":
        return _cmd_build(args)
    if args.cmd == "csp":
        return _cmd_csp(args)

    parser.print_help()
    return 2


def _build(root: Path) -> Any:
    from .assets.build import build_assets

    return asyncio.run(build_assets(root))


def _cmd_serve(args: Any) -> int:
    from .serve.http import run_server
    from .serve.table import ServingTable

    try:
        result = _build(args.root)
    except Exception as e:
        print(f"Error: failed to build site: {e}", file=sys.stderr)
        return 1

    table = ServingTable.from_build(result, root=args.root)
    try:
        run_server(table, args.host, int(args.port))
    except OSError as e:
        print(f"Error: cannot listen on {args.host}:{args.port}: {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_build(args: Any) -> int:
    try:
        result = _build(args.root)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = result.report
    print("✓ Site built")
    print(f"  Root: {Path(args.root).resolve()}")
    print(f"  Entries: {len(result.entries)}")
    for stats in report.entries:
        print(f"\n  {stats.path}")
        print(f"    Original: {stats.source_bytes} bytes")
        if stats.minified and stats.source_bytes:
            reduction = (stats.source_bytes - stats.body_bytes) / stats.source_bytes * 100
            print(f"    Minified: {stats.body_bytes} bytes ({reduction:.1f}% reduction)")
        for label, size in (("Brotli", stats.br_bytes), ("Gzip", stats.gz_bytes)):
            if size and stats.source_bytes:
                print(f"    {label}: {size} bytes ({size / stats.source_bytes * 100:.1f}% of original)")

    if report.warnings:
        print(f"\nWarnings ({len(report.warnings)}):")
        for w in report.warnings[:10]:
            print(f"  - {w}")
        if len(report.warnings) > 10:
            print(f"  ... and {len(report.warnings) - 10} more")
    return 0


def _cmd_csp(args: Any) -> int:
    try:
        result = _build(args.root)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for digest in result.inline.script_hashes:
        print(f"script sha256-{digest}")
    for digest in result.inline.style_hashes:
        print(f"style  sha256-{digest}")
    print(result.policy.csp)
    return 0


if __name__ == "__main__":
    app()
