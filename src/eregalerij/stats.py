"""Aggregate Zwijntje championship and competition wins per player."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .names import NAME_MAPPING, build_name_mapping, canonicalize, count_diacritics
from .scrape import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    HttpError,
    NetworkError,
    Result,
    WriteError,
    extract_cells,
    load_source_html,
    parse_results,
)
from .sources import DATA_SOURCES, Source, is_known_category_key

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = Path("docs/data/halloffame.json")


@dataclass(frozen=True)
class Player:
    """Win totals of one person across all categories."""

    key: str
    display_name: str
    wins: Mapping[str, int]
    total_wins: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "displayName": self.display_name,
            "wins": dict(self.wins),
            "totalWins": self.total_wins,
        }


@dataclass
class _PlayerTally:
    key: str
    display_name: str
    pinned: bool = False
    wins: Dict[str, int] = field(default_factory=dict)
    total_wins: int = 0

    def offer_display_name(self, candidate: str, *, mapped: bool) -> None:
        # A name from the mapping table is final; otherwise the spelling with
        # the most accents wins.
        if self.pinned:
            return
        if mapped:
            self.display_name = candidate
            self.pinned = True
        elif count_diacritics(candidate) > count_diacritics(self.display_name):
            self.display_name = candidate

    def credit(self, category_key: str) -> None:
        self.wins[category_key] = self.wins.get(category_key, 0) + 1
        self.total_wins += 1

    def freeze(self) -> Player:
        return Player(
            key=self.key,
            display_name=self.display_name,
            wins=dict(self.wins),
            total_wins=self.total_wins,
        )


def build_player_stats(
    results: Iterable[Result],
    *,
    name_mapping: Optional[Mapping[str, str]] = None,
) -> List[Player]:
    """Fold win records into players sorted by total wins.

    ``name_mapping`` must already be keyed by normalised names (see
    :func:`eregalerij.names.build_name_mapping`); it defaults to the built-in
    table. Players with equal totals keep the order in which they were first
    seen.

    The display name of a player is the first spelling seen, replaced by a
    later spelling with strictly more accented characters. A name resolved
    through the mapping table is final: it replaces any earlier spelling and
    is never replaced by an accented variant afterwards.
    """

    mapping = build_name_mapping(NAME_MAPPING) if name_mapping is None else name_mapping
    tallies: Dict[str, _PlayerTally] = {}
    for result in results:
        key = result.category_key
        for raw_name in result.winners:
            name = canonicalize(raw_name, mapping)
            tally = tallies.get(name.key)
            if tally is None:
                tally = _PlayerTally(
                    key=name.key,
                    display_name=name.display_name,
                    pinned=name.mapped,
                )
                tallies[name.key] = tally
            else:
                tally.offer_display_name(name.display_name, mapped=name.mapped)
            tally.credit(key)

    players = [tally.freeze() for tally in tallies.values()]
    players.sort(key=lambda player: player.total_wins, reverse=True)
    return players


def collect_source_results(
    source: Source,
    *,
    html_dir: Optional[Path] = None,
    skip_download: bool = False,
    retries: int = DEFAULT_RETRIES,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> List[Result]:
    """Fetch and parse a single source; a failing source yields no results."""

    LOGGER.info("Fetching %s", source.name)
    try:
        html = load_source_html(
            source,
            html_dir=html_dir,
            skip_download=skip_download,
            retries=retries,
            delay_seconds=delay_seconds,
            timeout=timeout,
        )
        results = parse_results(extract_cells(html), source)
    except (NetworkError, HttpError, OSError, ValueError) as exc:
        LOGGER.error("Skipping %s: %s", source.name, exc)
        return []
    LOGGER.info("Found %d wins for %s", len(results), source.name)
    return results


def collect_results(
    sources: Sequence[Source] = DATA_SOURCES,
    *,
    html_dir: Optional[Path] = None,
    skip_download: bool = False,
    retries: int = DEFAULT_RETRIES,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> List[Result]:
    results: List[Result] = []
    for source in sources:
        results.extend(
            collect_source_results(
                source,
                html_dir=html_dir,
                skip_download=skip_download,
                retries=retries,
                delay_seconds=delay_seconds,
                timeout=timeout,
            )
        )
    unknown = {
        result.category_key
        for result in results
        if not is_known_category_key(result.category_key)
    }
    for key in sorted(unknown):
        LOGGER.warning("Category %s has no column in the hall of fame table", key)
    return results


def build_payload(
    results: Sequence[Result],
    players: Sequence[Player],
    *,
    sources: Sequence[Source] = DATA_SOURCES,
    generated: Optional[datetime] = None,
) -> Dict[str, object]:
    if generated is None:
        generated = datetime.now(tz=timezone.utc)
    return {
        "lastUpdated": generated.isoformat(),
        "sources": [source.to_dict() for source in sources],
        "players": [player.to_dict() for player in players],
        "allResults": [result.to_dict() for result in results],
    }


def write_payload(payload: Mapping[str, object], output_path: Path) -> Path:
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise WriteError(f"Could not write {output_path}: {exc}") from exc
    return output_path


def build_hall_of_fame(
    *,
    sources: Sequence[Source] = DATA_SOURCES,
    output_path: Optional[Path] = None,
    name_mapping: Optional[Mapping[str, str]] = None,
    html_dir: Optional[Path] = None,
    skip_download: bool = False,
    retries: int = DEFAULT_RETRIES,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    generated: Optional[datetime] = None,
) -> Dict[str, object]:
    """Scrape every source, aggregate the winners and write the JSON artifact."""

    output_path = Path(output_path) if output_path is not None else DEFAULT_OUTPUT_PATH

    results = collect_results(
        sources,
        html_dir=html_dir,
        skip_download=skip_download,
        retries=retries,
        delay_seconds=delay_seconds,
        timeout=timeout,
    )
    LOGGER.info("Processing %d wins", len(results))
    players = build_player_stats(results, name_mapping=name_mapping)
    LOGGER.info("Found %d unique players", len(players))

    payload = build_payload(results, players, sources=sources, generated=generated)
    write_payload(payload, output_path)
    return payload


__all__ = [
    "DEFAULT_OUTPUT_PATH",
    "Player",
    "build_hall_of_fame",
    "build_payload",
    "build_player_stats",
    "collect_results",
    "collect_source_results",
    "write_payload",
]
