"""Command line entry point: ``python -m dirindex`` / ``dirindex``."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from dirindex.core.config import ConfigResolver
from dirindex.core.diagnostics import install_jsonl_sink
from dirindex.core.errors import ConfigError
from dirindex.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_verbosity,
    set_colors,
    set_verbosity,
)
from dirindex.listing.format import human_size
from dirindex.listing.service import ListingService
from dirindex.listing.types import Entry, SortKey


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirindex",
        description="Browse a directory tree merged with virtual manifest entries.",
    )
    parser.add_argument("--root", help="Sandbox root directory (config: root_dir)")
    parser.add_argument("--config", type=Path, help="User config file (YAML)")
    parser.add_argument("--no-cache", action="store_true", help="Disable the snapshot cache")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0)
    verbosity.add_argument("-q", "--quiet", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List a directory")
    p_list.add_argument("path", nargs="?", default="", help="Path relative to the root")
    p_list.add_argument("--q", dest="name_filter", default="", help="Name substring filter")
    p_list.add_argument("--ext", dest="extension_filter", default="", help="Extension filter")
    p_list.add_argument(
        "--sort", choices=[k.value for k in SortKey], default=SortKey.NAME.value
    )
    p_list.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    p_serve = sub.add_parser("serve", help="Serve the HTTP API")
    p_serve.add_argument("--host")
    p_serve.add_argument("--port", type=int)

    return parser


def build_resolver(args: argparse.Namespace) -> ConfigResolver:
    cli_args: dict[str, Any] = {}
    if args.root:
        cli_args["root_dir"] = args.root
    if args.no_cache:
        cli_args["cache.enabled"] = False
    if getattr(args, "host", None):
        cli_args["web.host"] = args.host
    if getattr(args, "port", None):
        cli_args["web.port"] = args.port
    if args.quiet:
        cli_args["logging.level"] = "quiet"
    elif args.verbose:
        cli_args["logging.level"] = "verbose" if args.verbose == 1 else "debug"
    return ConfigResolver(cli_args=cli_args, user_config_path=args.config)


def _print_table(entries: list[Entry]) -> None:
    for e in entries:
        size = "-" if e.is_dir else human_size(e.size)
        modified = datetime.fromtimestamp(e.mtime).strftime("%Y-%m-%d %H:%M")
        name = f"{e.name}/" if e.is_dir and not e.is_external else e.name
        print(f"{modified}  {size:>12}  {name}")


def cmd_list(service: ListingService, args: argparse.Namespace) -> int:
    result = service.try_list(
        args.path,
        name_filter=args.name_filter,
        extension_filter=args.extension_filter,
        sort_key=args.sort,
    )
    if result.error is not None:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([e.to_dict() for e in result.entries], indent=2, ensure_ascii=False))
    else:
        _print_table(result.entries)
    return 0


def cmd_serve(service: ListingService, resolver: ConfigResolver) -> int:
    import uvicorn

    from dirindex.web.app import create_app

    host = resolver.resolve_str("web.host")
    port = resolver.resolve_int("web.port", minimum=1)
    log_level = {
        VerbosityLevel.QUIET: "error",
        VerbosityLevel.NORMAL: "info",
        VerbosityLevel.VERBOSE: "info",
        VerbosityLevel.DEBUG: "debug",
    }[get_verbosity()]

    uvicorn.run(create_app(service), host=host, port=port, log_level=log_level)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    resolver = build_resolver(args)

    try:
        apply_logging_policy(resolver.resolve_logging_policy())
        set_colors(resolver.resolve_bool("logging.color"))
        service = ListingService.from_resolver(resolver)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    install_jsonl_sink(resolver=resolver)

    if args.command == "list":
        if args.json:
            # Keep stdout parseable.
            set_verbosity(VerbosityLevel.QUIET)
        return cmd_list(service, args)
    return cmd_serve(service, resolver)


if __name__ == "__main__":
    sys.exit(main())
