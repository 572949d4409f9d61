# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import find_dotenv, load_dotenv

from hanjadict.app import (
    lookup_character,
    manual_resolve,
    review_queue,
    review_stats,
    run_pipeline,
    run_single_stage,
    search_by_element,
    search_by_reading,
)
from hanjadict.common.logging import configure_logging
from hanjadict.config import ConfigurationError
from hanjadict.domain.model import StageName
from hanjadict.domain.vocabulary import Unrecognized, parse_element

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from hanjadict.app import EntryView
    from hanjadict.domain.model import Element, Page

log = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_USAGE = 2


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--include-invalid",
        action="store_true",
        help="Also load records that failed validation (flagged for review)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records per load transaction (defaults to config)",
    )


def _add_page_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--page", type=int, default=1, help="Page number (default: %(default)s)")
    parser.add_argument(
        "--page-size",
        type=int,
        default=20,
        help="Entries per page, at most 50 (default: %(default)s)",
    )
    parser.add_argument(
        "--mask-pending",
        action="store_true",
        help="Hide the element of entries still awaiting review",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build and query the Hanja dictionary")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the full pipeline")
    run.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep going after a failed stage",
    )
    run.add_argument(
        "--skip",
        type=str,
        default="",
        help="Comma-separated stages to skip when their output already exists",
    )
    run.add_argument(
        "--resume",
        action="store_true",
        help="Skip stages completed by the last checkpointed run",
    )
    run.add_argument(
        "--no-report-on-failure",
        action="store_true",
        help="Do not write a report when a stage failed",
    )
    _add_run_options(run)

    stage = subparsers.add_parser("stage", help="Run a single stage")
    stage.add_argument("name", choices=[str(name) for name in StageName], help="Stage to run")
    _add_run_options(stage)

    lookup = subparsers.add_parser("lookup", help="Show one character")
    lookup.add_argument("character", help="The Hanja character")
    counters = lookup.add_mutually_exclusive_group()
    counters.add_argument("--count-usage", action="store_true", help="Increment usage count")
    counters.add_argument("--count-name", action="store_true", help="Increment name count")

    search = subparsers.add_parser("search", help="Search by reading or element")
    criteria = search.add_mutually_exclusive_group(required=True)
    criteria.add_argument("--reading", type=str, help="Hangul reading (dueum variants included)")
    criteria.add_argument("--element", type=str, help="Five-element value, e.g. wood or 목")
    _add_page_options(search)

    review = subparsers.add_parser("review", help="Manual review of element conflicts")
    review_sub = review.add_subparsers(dest="review_command", required=True)
    review_list = review_sub.add_parser("list", help="List entries awaiting review")
    review_list.add_argument("--limit", type=int, help="Maximum number of entries to list")
    review_sub.add_parser("stats", help="Show review progress")
    resolve = review_sub.add_parser("resolve", help="Decide the element of a character")
    resolve.add_argument("character", help="The Hanja character")
    resolve.add_argument("--element", type=str, required=True, help="Five-element value")
    resolve.add_argument("--note", type=str, help="Optional reviewer note")

    return parser.parse_args(list(argv))


def _parse_stages(value: str) -> list[StageName]:
    stages: list[StageName] = []
    for item in value.split(","):
        name = item.strip().lower()
        if not name:
            continue
        try:
            stages.append(StageName(name))
        except ValueError as exc:
            raise ValueError(f"Unknown stage: {item.strip()}") from exc
    return stages


def _parse_element(value: str) -> Element:
    parsed = parse_element(value)
    if isinstance(parsed, Unrecognized):
        raise ValueError(parsed.error)  # noqa: TRY004
    return parsed


def _validate(args: argparse.Namespace) -> None:
    if args.command in {"run", "stage"} and args.batch_size is not None and args.batch_size < 1:
        raise ValueError("Batch size must be positive")
    if args.command == "run":
        args.skip = _parse_stages(args.skip)
    if args.command == "search":
        if args.page < 1 or args.page_size < 1:
            raise ValueError("Page and page size must be positive")
        if args.element is not None:
            args.element = _parse_element(args.element)
    if args.command == "review" and args.review_command == "resolve":
        args.element = _parse_element(args.element)


def _format_entry(entry: EntryView) -> str:
    element = entry.element or "-"
    readings = ", ".join(entry.readings) or "-"
    meaning = entry.meaning or "-"
    line = (
        f"{entry.character}  {meaning}  [{readings}]  strokes={entry.strokes or '-'}  "
        f"element={element}  yin_yang={entry.yin_yang or '-'}  "
        f"status={entry.review_status}  score={entry.evidence_score}  by={entry.decided_by}"
    )
    if entry.review_note:
        line += f"  note={entry.review_note}"
    return line


def _print_page(found: Page[EntryView]) -> None:
    for entry in found.items:
        print(_format_entry(entry))
    more = " (more available)" if found.has_next else ""
    print(f"Page {found.page}, {len(found.items)} of {found.total} entries{more}")


def _run_command(args: argparse.Namespace) -> int:  # noqa: C901
    if args.command == "run":
        run = run_pipeline(
            continue_on_error=True if args.continue_on_error else None,
            skip=args.skip,
            resume=args.resume,
            include_invalid=args.include_invalid,
            batch_size=args.batch_size,
            report_on_failure=not args.no_report_on_failure,
        )
        if not run.succeeded:
            log.error("Pipeline run %s failed at: %s", run.run_id, ", ".join(run.failed))
            return EXIT_FAILURE
        return 0
    if args.command == "stage":
        result = run_single_stage(
            StageName(args.name),
            include_invalid=args.include_invalid,
            batch_size=args.batch_size,
        )
        return 0 if result.success else EXIT_FAILURE
    if args.command == "lookup":
        entry = lookup_character(
            args.character, count_usage=args.count_usage, count_name=args.count_name
        )
        if entry is None:
            print(f"{args.character}: not found", file=sys.stderr)
            return EXIT_FAILURE
        print(_format_entry(entry))
        return 0
    if args.command == "search":
        if args.reading is not None:
            found = search_by_reading(
                args.reading,
                page=args.page,
                page_size=args.page_size,
                mask_pending=args.mask_pending,
            )
        else:
            found = search_by_element(
                args.element,
                page=args.page,
                page_size=args.page_size,
                mask_pending=args.mask_pending,
            )
        _print_page(found)
        return 0
    if args.command == "review":
        if args.review_command == "list":
            entries = review_queue(limit=args.limit)
            for entry in entries:
                print(_format_entry(entry))
            print(f"{len(entries)} entries awaiting review")
        elif args.review_command == "stats":
            stats = review_stats()
            print(
                f"total={stats.total} pending={stats.pending} resolved={stats.resolved} "
                f"resolution_rate={stats.resolution_rate:.1f}%"
            )
        else:
            entry = manual_resolve(args.character, args.element, note=args.note)
            print(_format_entry(entry))
        return 0
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    configure_logging()
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        code = _run_command(parsed_args)
    except (ValueError, ConfigurationError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception("Fatal error")
        sys.exit(EXIT_FAILURE)
    if code:
        sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point: load `.env` from the working directory, then run."""
    load_dotenv(find_dotenv(usecwd=True))
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
