"""Command line interface for searching users, organizations and tickets.

Examples:
    zen-search list-fields Users
    zen-search search Users _id 71
    zen-search search Tickets type problem --json
    zen-search --data-dir ./fixtures search Organizations name Enthaze
"""

# ruff: noqa: T201  # CLI intentionally prints results

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
import textwrap
from typing import Any

import orjson

from zen_search.config import Settings
from zen_search.domain.model import EntityType
from zen_search.exceptions import ZenSearchError
from zen_search.observability.logging import configure_logging
from zen_search.observability.tracing import init_tracing
from zen_search.service_layer.search_service import SearchService


logger = logging.getLogger("zen_search.cli")


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zen-search",
        description="Search users, organizations and tickets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Entity types: Users, Organizations, Tickets

            Examples:
              zen-search list-fields Users
              zen-search search Tickets type problem
              zen-search search Users _id 71 --json
            """
        ).strip(),
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding users.json, organizations.json and tickets.json (default: $ZEN_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: $ZEN_LOG_LEVEL or info)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_fields = subparsers.add_parser("list-fields", help="List searchable fields for an entity type")
    list_fields.add_argument("entity_type", metavar="TYPE", help="Users, Organizations or Tickets")

    search = subparsers.add_parser("search", help="Search one field of an entity type")
    search.add_argument("entity_type", metavar="TYPE", help="Users, Organizations or Tickets")
    search.add_argument("field", metavar="FIELD", help="Field to search (see list-fields)")
    search.add_argument("value", metavar="VALUE", help="Value to match")
    search.add_argument("--json", action="store_true", help="Print results as a JSON array")

    return parser


def render_records(records: Sequence[dict[str, Any]]) -> str:
    """Render records as aligned key/value blocks separated by rules."""

    if not records:
        return "No results found"

    blocks: list[str] = []
    for record in records:
        width = max(len(key) for key in record)
        lines = []
        for key, value in record.items():
            if isinstance(value, list):
                value = ", ".join(str(item) for item in value)
            elif isinstance(value, bool):
                value = "true" if value else "false"
            lines.append(f"{key.ljust(width)}  {value}")
        blocks.append("\n".join(lines))
    rule = "\n" + "-" * 60 + "\n"
    return rule.join(blocks) + f"\n\n{len(records)} result(s)"


def render_fields(fields: Sequence[str]) -> str:
    return "\n".join(f"* {name}" for name in fields)


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return Settings(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    settings = _load_settings(args)
    configure_logging(settings.log_level, json_output=settings.log_json)
    init_tracing(settings.service_name)

    try:
        if args.command == "list-fields":
            print(render_fields(SearchService(settings=settings).list_fields(EntityType.parse(args.entity_type))))
            return 0

        service = SearchService(settings=settings)
        service.initialize(args.entity_type)
        results = service.search(args.field, args.value)
    except ZenSearchError as exc:
        logger.error("%s", exc)
        return 1

    if args.json:
        print(orjson.dumps(results, option=orjson.OPT_INDENT_2).decode("utf-8"))
    else:
        print(render_records(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
