import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from . import config
from .core import MediaOrganizerApp
from .exceptions import FileOperationError, MediaOrganizerError, RootPathError
from .models import Override, PlannedOperation
from .organization.overrides import InputEvent, ReviewOutcome, ReviewPhase, ReviewSession
from .reporting import PlanReporter

# Single-line commands accepted during review
REVIEW_KEYS = {
    'k': InputEvent.UP,
    'up': InputEvent.UP,
    'j': InputEvent.DOWN,
    'down': InputEvent.DOWN,
    'i': InputEvent.TOGGLE_IGNORE,
    'd': InputEvent.TOGGLE_DELETE,
    'r': InputEvent.TOGGLE_RENAME,
    'y': InputEvent.CONFIRM,
    '': InputEvent.CONFIRM,
    'n': InputEvent.CANCEL,
    'q': InputEvent.CANCEL,
}

RENAME_CANCEL_KEY = '-'

REVIEW_HELP = "j/k = down/up; i = Ignore, d = Delete, r = Rename. y or Enter executes, n cancels."

WINDOW_SIZE = 10


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def parse_args(argv: Optional[Sequence[str]] = None):
    p = argparse.ArgumentParser(
        prog="media-organizer",
        description=(
            "Recursively scans a directory for images, RAW files and videos, removes exact "
            "duplicates (same size + content hash) and organizes files into YEAR/YYYY-MM-DD/ "
            "based on EXIF or file dates. Dry run by default."
        ),
    )

    p.add_argument("path", type=Path, nargs="?", default=Path.cwd(),
                   help="Path to scan (default: current directory)")
    p.add_argument("--execute", action="store_true", help="Execute the operations without review")
    p.add_argument("--no-review", action="store_true", help="Only print the plan, even on a terminal")
    p.add_argument("--report-csv", type=Path, default=None, help="Also write the plan to this CSV file")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def print_plan(session: ReviewSession, reporter: PlanReporter, write: Callable[[str], None] = print):
    """Prints a window of the plan around the selected entry."""
    start = max(0, min(session.selected_index - WINDOW_SIZE // 2, len(session.plan) - WINDOW_SIZE))
    for index in range(start, min(start + WINDOW_SIZE, len(session.plan))):
        marker = "> " if index == session.selected_index else "  "
        write(marker + reporter.describe(session.plan[index], session.override_for(index)))


def run_review(session: ReviewSession,
               reporter: PlanReporter,
               read: Callable[[str], str] = input,
               write: Callable[[str], None] = print) -> ReviewOutcome:
    """Feeds terminal input to the review session until it is confirmed or cancelled."""
    write(REVIEW_HELP)
    while session.phase is not ReviewPhase.TERMINAL:
        try:
            if session.phase is ReviewPhase.RENAME_INPUT:
                name = read(f"New name [{session.rename_text}] (Enter keeps it, {RENAME_CANCEL_KEY} cancels): ")
                name = name.strip()
                if name == RENAME_CANCEL_KEY:
                    session.handle(InputEvent.CANCEL_RENAME)
                else:
                    # Blank keeps the suggested name
                    session.handle(InputEvent.COMMIT_RENAME, name or None)
                continue

            print_plan(session, reporter, write)
            key = read(f"[{session.selected_index + 1}/{len(session.plan)}] > ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            session.handle(InputEvent.CANCEL_RENAME)
            session.handle(InputEvent.CANCEL)
            break

        event = REVIEW_KEYS.get(key)
        if event is None:
            write(REVIEW_HELP)
            continue
        session.handle(event)

    return session.outcome


def write_report(reporter: PlanReporter,
                 plan: Sequence[PlannedOperation],
                 output_csv: Optional[Path],
                 overrides: Optional[Mapping[int, Override]] = None):
    if output_csv:
        reporter.write_csv(plan, output_csv, overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    # 1. Setup
    try:
        app = MediaOrganizerApp(args.path, show_progress=not args.no_progress)
    except RootPathError as e:
        logging.error(f"Error: {e}")
        return config.EXIT_FAILURE

    logging.info("=== Media Organizer Started ===")
    logging.info(f"Path: {app.root}")
    logging.info("EXECUTION MODE" if args.execute else "DRY RUN MODE")

    reporter = PlanReporter()
    try:
        # 2. Plan
        planning = app.plan()
        plan = planning.plan
        for line in reporter.summary(app.progress, plan):
            logging.info(line)

        if not plan:
            write_report(reporter, plan, args.report_csv)
            logging.info("Nothing to do.")
            return config.EXIT_OK

        # 3. Execute right away, or review first
        if args.execute:
            write_report(reporter, plan, args.report_csv)
            app.apply(plan)
            return config.EXIT_OK

        if args.no_review or not sys.stdin.isatty():
            write_report(reporter, plan, args.report_csv)
            for op in plan:
                print(reporter.describe(op))
            logging.info("Dry run complete! Re-run with --execute to apply.")
            return config.EXIT_OK

        session = app.review(plan)
        outcome = run_review(session, reporter)
        # The report reflects what the operator decided, even when cancelled
        write_report(reporter, plan, args.report_csv, session.overrides)
        if outcome is not ReviewOutcome.EXECUTE:
            logging.warning("Canceled. No changes made.")
            return config.EXIT_OK

        app.apply(plan, session.overrides)
        return config.EXIT_OK

    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return config.EXIT_INTERRUPTED
    except FileOperationError as e:
        logging.error(f"Error at operation #{e.index}: {e}. Earlier operations were applied.")
        return config.EXIT_FAILURE
    except MediaOrganizerError as e:
        logging.error(f"Error: {e}")
        return config.EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
