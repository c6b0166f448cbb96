from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .names import NAME_MAPPING, build_name_mapping, load_name_mapping
from .scrape import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    WriteError,
)
from .stats import DEFAULT_OUTPUT_PATH, build_hall_of_fame

LOGGER = logging.getLogger("eregalerij")

TOP_PLAYER_COUNT = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Fetch the Zwijntje championship and competition results and write "
            "the hall of fame JSON file."
        )
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_PATH,
        help="Destination of the hall of fame JSON file.",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help="Maximum number of attempts per result page.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_DELAY_SECONDS,
        help="Wait in seconds before the first retry; doubles on every retry.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="Timeout in seconds for a single request.",
    )
    parser.add_argument(
        "--html-dir",
        type=Path,
        default=None,
        help="Directory in which downloaded result pages are stored.",
    )
    parser.add_argument(
        "--skip-download",
        action="store_true",
        help="Reuse pages from --html-dir instead of downloading them again.",
    )
    parser.add_argument(
        "--name-mapping",
        type=Path,
        default=None,
        help="JSON file mapping name variants to the canonical player name.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    extra_mapping = {}
    if args.name_mapping is not None:
        try:
            extra_mapping = load_name_mapping(args.name_mapping)
        except (OSError, ValueError) as exc:
            LOGGER.error("Could not read name mapping: %s", exc)
            return 1
    name_mapping = build_name_mapping(NAME_MAPPING, extra_mapping)

    try:
        payload = build_hall_of_fame(
            output_path=args.output,
            name_mapping=name_mapping,
            html_dir=args.html_dir,
            skip_download=args.skip_download,
            retries=args.retries,
            delay_seconds=args.delay,
            timeout=args.timeout,
        )
    except WriteError as exc:
        LOGGER.error("%s", exc)
        return 1

    players = payload["players"]
    print(
        "Hall of fame updated:",
        f"{len(payload['allResults'])} wins, {len(players)} players -> {args.output}",
    )
    for rank, player in enumerate(players[:TOP_PLAYER_COUNT], start=1):
        print(f"  {rank}. {player['displayName']}: {player['totalWins']} wins")
    return 0


if __name__ == "__main__":
    sys.exit(main())
