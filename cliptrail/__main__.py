"""Entry point for the ClipTrail CLI."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .classifier import classify, score
from .log import configure_file_logging, logger
from .preferences import CLIPTRAIL_HOME, PREFS_PATH, VALID_FILTERS, load_preferences

LOG_PATH = CLIPTRAIL_HOME / "cliptrail.log"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cliptrail",
        description="Terminal clipboard history manager.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--prefs",
        type=Path,
        default=None,
        help=f"preferences file (default: {PREFS_PATH})",
    )
    parser.add_argument("--store", type=Path, default=None, help="history JSON file")
    parser.add_argument(
        "--filter",
        choices=VALID_FILTERS,
        default=None,
        help="category filter to start with",
    )
    parser.add_argument(
        "--no-capture",
        action="store_true",
        help="do not watch the system clipboard",
    )
    parser.add_argument(
        "--classify",
        metavar="TEXT",
        default=None,
        help="print the detected category of TEXT ('-' reads stdin) and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help=f"write debug logs to {LOG_PATH}",
    )
    return parser


def _run_classify(text: str) -> None:
    if text == "-":
        text = sys.stdin.read()
    scores = score(text)
    print(
        f"{classify(text).value}\t"
        f"url={scores.url} code={scores.code} text={scores.text}"
    )


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    if args.debug:
        configure_file_logging(LOG_PATH)

    if args.classify is not None:
        _run_classify(args.classify)
        return

    prefs = load_preferences(args.prefs)
    if args.store is not None:
        prefs.history.store_path = str(args.store)
    if args.filter is not None:
        prefs.history.active_filter = args.filter

    from .app import ClipTrailApp

    logger.debug("Starting ClipTrail %s (store=%s)", __version__, prefs.history.resolved_store_path)
    app = ClipTrailApp(
        prefs=prefs,
        prefs_path=args.prefs,
        capture=False if args.no_capture else None,
        persist_prefs=True,
    )
    app.run()


if __name__ == "__main__":
    main()
