"""CLI entry-point: ``python -m seedtopics topics`` / ``check-title`` / ``add-title``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from seedtopics import config
from seedtopics.dedupe import dedupe
from seedtopics.pipeline import run_search_topics_pipeline
from seedtopics.similarity import check_title_similarity
from seedtopics.store import STATUSES, TitleStore

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_json(payload: dict[str, Any]) -> None:
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _run_topics(args: argparse.Namespace) -> int:
    try:
        result = run_search_topics_pipeline(
            args.seed_title,
            args.city,
            args.audience,
            current_year=args.year,
        )
    except ValueError as exc:
        # Missing credentials surface here, before any network call.
        logger.error("%s", exc)
        return 2

    payload = result.model_dump(mode="json", by_alias=True)

    store = TitleStore(db_path=config.DB_PATH)
    _fresh, duplicates = dedupe(result.topics, store.existing_titles())
    payload["duplicates"] = [
        {"id": topic.id, "title": topic.title, "reason": check.reason}
        for topic, check in duplicates
    ]
    if args.record and result.topics:
        store.insert_many(result.topics, seed_title=args.seed_title)

    _print_json(payload)
    return 0 if result.ok else 1


def _check_title(args: argparse.Namespace) -> int:
    store = TitleStore(db_path=config.DB_PATH)
    check = check_title_similarity(args.title, store.existing_titles())
    _print_json(check.model_dump(by_alias=True))
    return 1 if check.is_duplicate else 0


def _add_title(args: argparse.Namespace) -> int:
    store = TitleStore(db_path=config.DB_PATH)
    store.insert(args.title, status=args.status)
    logger.info("Stored %s title: %s", args.status, args.title)
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="seedtopics",
        description="Grounded blog topic generation from a seed title.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command")

    # ── topics ─────────────────────────────────────────────────────────
    topics_parser = sub.add_parser("topics", help="Generate grounded topic candidates.")
    topics_parser.add_argument("seed_title", help="Human-supplied seed title.")
    topics_parser.add_argument(
        "--city",
        choices=config.CITY_CHOICES,
        default=config.WHOLE_COUNTRY,
        help=f"City focus (default: {config.WHOLE_COUNTRY}).",
    )
    topics_parser.add_argument(
        "--audience",
        choices=config.AUDIENCE_CHOICES,
        default="both",
        help="Audience focus (default: both).",
    )
    topics_parser.add_argument(
        "--year", type=int, default=None, help="Override the current year."
    )
    topics_parser.add_argument(
        "--record",
        action="store_true",
        help="Log the generated titles in the titles store.",
    )

    # ── check-title ───────────────────────────────────────────────────
    check_parser = sub.add_parser(
        "check-title", help="Compare a title against existing titles."
    )
    check_parser.add_argument("title")

    # ── add-title ─────────────────────────────────────────────────────
    add_parser = sub.add_parser("add-title", help="Record a published or drafted title.")
    add_parser.add_argument("title")
    add_parser.add_argument("--status", choices=STATUSES, default="PUBLISHED")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "topics":
        sys.exit(_run_topics(args))
    elif args.command == "check-title":
        sys.exit(_check_title(args))
    elif args.command == "add-title":
        sys.exit(_add_title(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
