# src/main.py — v2
"""CLI entry point — word counts, change checks and cache maintenance.

Usage:
    ecfrcount title <number>
    ecfrcount chapter <number> <chapter>
    ecfrcount agency <name> [--refresh]
    ecfrcount changes <name> | --title <number>
    ecfrcount cache-stats
    ecfrcount cache-clear
    ecfrcount amendments [--limit N] [--by-issue-date]
    ecfrcount titles [--start YYYY-MM-DD --end YYYY-MM-DD]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from typing import Any

from pydantic import BaseModel

from ecfrcount.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from ecfrcount.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except (ConfigurationError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ecfrcount",
        description=f"ecfrcount v{__version__} — eCFR word counts and change detection",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print results as JSON",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- title ---
    p_title = subparsers.add_parser("title", help="Count words in one title")
    p_title.add_argument("number", type=int, help="CFR title number")
    p_title.add_argument(
        "--refresh", action="store_true", help="Ignore cached results",
    )
    p_title.set_defaults(func=_cmd_title)

    # --- chapter ---
    p_chapter = subparsers.add_parser("chapter", help="Count words in one chapter")
    p_chapter.add_argument("number", type=int, help="CFR title number")
    p_chapter.add_argument("chapter", help="Chapter id (e.g. 4 or IV)")
    p_chapter.add_argument(
        "--refresh", action="store_true", help="Ignore cached results",
    )
    p_chapter.set_defaults(func=_cmd_chapter)

    # --- agency ---
    p_agency = subparsers.add_parser(
        "agency", help="Aggregate word counts for an agency",
    )
    p_agency.add_argument("name", help="Agency name, short name or slug")
    p_agency.add_argument(
        "--refresh", action="store_true", help="Ignore cached results",
    )
    p_agency.set_defaults(func=_cmd_agency)

    # --- changes ---
    p_changes = subparsers.add_parser(
        "changes", help="Check an agency or title for content changes",
    )
    target = p_changes.add_mutually_exclusive_group(required=True)
    target.add_argument("name", nargs="?", help="Agency name, short name or slug")
    target.add_argument("--title", type=int, default=None, help="CFR title number")
    p_changes.set_defaults(func=_cmd_changes)

    # --- cache-stats ---
    p_stats = subparsers.add_parser("cache-stats", help="Show cache statistics")
    p_stats.set_defaults(func=_cmd_cache_stats)

    # --- cache-clear ---
    p_clear = subparsers.add_parser("cache-clear", help="Remove expired cache entries")
    p_clear.set_defaults(func=_cmd_cache_clear)

    # --- amendments ---
    p_amend = subparsers.add_parser(
        "amendments", help="List titles grouped by most recent amendment",
    )
    p_amend.add_argument(
        "--limit", type=int, default=10,
        help="Number of date groups to show (default: 10)",
    )
    p_amend.add_argument(
        "--by-issue-date", action="store_true",
        help="Group by latest issue date instead of amendment date",
    )
    p_amend.set_defaults(func=_cmd_amendments)

    # --- titles ---
    p_titles = subparsers.add_parser(
        "titles", help="List titles, most recently brought up to date first",
    )
    p_titles.add_argument(
        "--start", type=date.fromisoformat, default=None,
        help="Only titles up to date on or after this day (YYYY-MM-DD)",
    )
    p_titles.add_argument(
        "--end", type=date.fromisoformat, default=None,
        help="Only titles up to date on or before this day (YYYY-MM-DD)",
    )
    p_titles.set_defaults(func=_cmd_titles)

    return parser


async def _run(args: argparse.Namespace, settings: Any) -> int:
    from ecfrcount.api.facade import WordCountService

    async with WordCountService(settings) as service:
        return await args.func(args, service)


async def _cmd_title(args: argparse.Namespace, service: Any) -> int:
    result = await service.process_title(args.number, force_refresh=args.refresh)
    if args.json:
        _print_json(result)
    else:
        _print_extraction(result)
    return 0


async def _cmd_chapter(args: argparse.Namespace, service: Any) -> int:
    result = await service.process_chapter(
        args.number, args.chapter, force_refresh=args.refresh
    )
    if args.json:
        _print_json(result)
    else:
        _print_extraction(result)
    return 0


async def _cmd_agency(args: argparse.Namespace, service: Any) -> int:
    result = await service.process_organization(args.name, force_refresh=args.refresh)
    if args.json:
        _print_json(result)
        return 0

    print(f"\n{result.organization.display_name or result.organization.name}:")
    print(f"  Total words:  {result.total_words:,}")
    print(f"  Titles:       {result.processed_titles}/{result.total_titles}")
    print(f"  Checksum:     {result.aggregate_checksum}")
    for title in result.title_results:
        label = f"Title {title.title}"
        if title.chapter:
            label += f", Ch. {title.chapter}"
        if title.error:
            print(f"    {label}: error: {title.error}")
        else:
            print(f"    {label}: {title.word_count:,} words ({title.checksum})")
    return 0


async def _cmd_changes(args: argparse.Namespace, service: Any) -> int:
    if args.title is not None:
        report = await service.check_title_changes(args.title)
    else:
        report = await service.check_changes(args.name)
    if args.json:
        _print_json(report)
        return 0

    print(f"\nChanged: {'yes' if report.changed else 'no'} ({report.reason})")
    if report.old_checksum is not None:
        print(f"  Checksum:  {report.old_checksum} -> {report.new_checksum}")
        print(f"  Words:     {report.old_word_count:,} -> {report.new_word_count:,}")
    return 0


async def _cmd_cache_stats(args: argparse.Namespace, service: Any) -> int:
    stats = await service.get_cache_stats()
    if args.json:
        _print_json(stats)
        return 0

    print(f"\nCache {service.settings.cache_file}:")
    print(f"  Entries:  {stats.total_entries}")
    print(f"  Valid:    {stats.valid_entries}")
    print(f"  Expired:  {stats.expired_entries}")
    for type_, count in sorted(stats.counts_by_type.items()):
        print(f"    {type_}: {count}")
    return 0


async def _cmd_cache_clear(args: argparse.Namespace, service: Any) -> int:
    removed = await service.clear_expired_cache()
    if args.json:
        print(json.dumps({"removed": removed}))
    else:
        print(f"Removed {removed} expired cache entries")
    return 0


async def _cmd_amendments(args: argparse.Namespace, service: Any) -> int:
    if args.by_issue_date:
        groups = await service.titles_by_issue_date()
    else:
        groups = await service.recent_amendments()
    groups = groups[: max(args.limit, 0)]
    if args.json:
        print(json.dumps([g.model_dump(mode="json") for g in groups], indent=2))
        return 0

    for group in groups:
        print(f"\n{group.date} ({group.count} titles):")
        for title in group.titles:
            print(f"  Title {title.number}: {title.name} ({title.days_since} days ago)")
    return 0


async def _cmd_titles(args: argparse.Namespace, service: Any) -> int:
    if (args.start is None) != (args.end is None):
        print("Both --start and --end are required for a date range", file=sys.stderr)
        return 2
    if args.start is not None:
        titles = await service.titles_in_range(args.start, args.end)
    else:
        titles = await service.titles_by_date()
    if args.json:
        print(json.dumps([t.model_dump(mode="json") for t in titles], indent=2))
        return 0

    for title in titles:
        status = " [reserved]" if title.reserved else ""
        print(f"  {title.up_to_date_as_of or 'unknown':10s}  Title {title.number}: {title.name}{status}")
    return 0


def _print_extraction(result: Any) -> None:
    """Print a human-readable summary of an ExtractionResult."""
    label = f"Title {result.title}"
    if result.chapter:
        label += f", Chapter {result.chapter}"
    print(f"\n{label}{' (cached)' if result.cached else ''}:")
    print(f"  Words:       {result.word_count:,}")
    print(f"  Characters:  {result.text_length:,}")
    print(f"  Issue date:  {result.issue_date}")
    print(f"  Checksum:    {result.checksum}")
    if result.sample_text:
        print(f"  Sample:      {result.sample_text}")


def _print_json(model: BaseModel) -> None:
    print(model.model_dump_json(indent=2))


def _setup_logging(settings: Any, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from ecfrcount.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
