from __future__ import annotations

import enum
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import requests
from bs4 import BeautifulSoup

from .sources import Source, category_key

LOGGER = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; zwijntje-eregalerij/1.0; +https://www.zwijntje.nl/)"
}
HTML_ACCEPT_HEADER = {"Accept": "text/html,application/xhtml+xml"}

DEFAULT_RETRIES = 3
DEFAULT_DELAY_SECONDS = 0.5
DEFAULT_TIMEOUT_SECONDS = 30.0

RETRYABLE_STATUS_CODES = frozenset({429})
RETRYABLE_EXCEPTIONS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)

ZOMERCYCLUS = "zomercyclus"
TETE_A_TETE = "tete-a-tete"
TOP_POULE = "A"

PLACEHOLDERS = frozenset({"", "-", "–"})
YEAR_PATTERN = re.compile(r"[0-9]{4}")
NAME_SEPARATOR_PATTERN = re.compile(r",|\sen\s")


class HallOfFameError(Exception):
    """Base class for failures while building the hall of fame."""


class NetworkError(HallOfFameError):
    """Connection-level failure that persisted through all retries."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url


class HttpError(HallOfFameError):
    """The server answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        label = f"HTTP {status_code}"
        if reason:
            label = f"{label} {reason}"
        super().__init__(f"{url}: {label}")
        self.url = url
        self.status_code = status_code


class WriteError(HallOfFameError):
    """The output artifact could not be written."""


class FetchState(enum.Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCESS = "success"
    FAILED = "failed"


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code < 600


def backoff_delay(attempt: int, delay_seconds: float) -> float:
    """Delay before retrying after the given (1-based) failed attempt."""
    return delay_seconds * (2 ** (attempt - 1))


def _decode_response(response: requests.Response) -> str:
    # Without a declared charset requests falls back to latin-1 for text/html.
    if "charset" not in response.headers.get("Content-Type", "").lower():
        response.encoding = "utf-8"
    return response.text


def fetch_html(
    url: str,
    *,
    retries: int = DEFAULT_RETRIES,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    headers: Optional[Dict[str, str]] = None,
) -> str:
    """Download ``url`` and return the response body as text.

    Connection errors (including connections dropped while reading the
    body), timeouts, HTTP 429 and 5xx responses are retried up to
    ``retries`` attempts in total, waiting ``delay_seconds`` before the first
    retry and doubling the wait afterwards. Any other non-2xx status fails
    immediately.
    Raises :class:`NetworkError` or :class:`HttpError` once no attempts are
    left.
    """

    merged_headers = {**REQUEST_HEADERS, **HTML_ACCEPT_HEADER, **(headers or {})}
    max_attempts = max(1, retries)
    attempt = 0
    state = FetchState.ATTEMPTING
    body: Optional[str] = None
    error: Optional[HallOfFameError] = None

    while state not in (FetchState.SUCCESS, FetchState.FAILED):
        if state is FetchState.BACKOFF:
            wait = backoff_delay(attempt, delay_seconds)
            LOGGER.warning(
                "Attempt %d/%d for %s failed (%s), retrying in %.1fs",
                attempt,
                max_attempts,
                url,
                error,
                wait,
            )
            time.sleep(wait)
            state = FetchState.ATTEMPTING
            continue

        attempt += 1
        retryable = False
        try:
            response = requests.get(url, timeout=timeout, headers=merged_headers)
        except RETRYABLE_EXCEPTIONS as exc:
            error = NetworkError(url, str(exc))
            retryable = True
        except requests.RequestException as exc:
            error = NetworkError(url, str(exc))
        else:
            if 200 <= response.status_code < 300:
                body = _decode_response(response)
                state = FetchState.SUCCESS
                continue
            error = HttpError(url, response.status_code, response.reason or "")
            retryable = is_retryable_status(response.status_code)

        if retryable and attempt < max_attempts:
            state = FetchState.BACKOFF
        else:
            state = FetchState.FAILED

    if state is FetchState.SUCCESS and body is not None:
        return body
    raise error if error is not None else NetworkError(url, "request failed")


def cached_html_path(directory: Path, source: Source) -> Path:
    return directory / f"{source.key}.html"


def load_source_html(
    source: Source,
    *,
    html_dir: Optional[Path] = None,
    skip_download: bool = False,
    retries: int = DEFAULT_RETRIES,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    """Return the HTML of ``source``, optionally through a page cache on disk."""

    cache_path = cached_html_path(html_dir, source) if html_dir is not None else None
    if skip_download and cache_path is not None and cache_path.is_file():
        try:
            html = cache_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Could not read cached page %s: %s", cache_path, exc)
        else:
            LOGGER.info("Using cached page %s", cache_path)
            return html

    html = fetch_html(
        source.url,
        retries=retries,
        delay_seconds=delay_seconds,
        timeout=timeout,
    )
    if cache_path is not None:
        try:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            cache_path.write_text(html, encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("Could not store page %s: %s", cache_path, exc)
    return html


def extract_cells(html: str) -> List[str]:
    """Flatten every ``<td>`` of ``html`` into its decoded, stripped text."""
    soup = BeautifulSoup(html, "html.parser")
    return [cell.get_text().strip() for cell in soup.find_all("td")]


@dataclass(frozen=True)
class Result:
    year: int
    category: str
    type: str
    poule: str
    winners: Tuple[str, ...]

    @property
    def category_key(self) -> str:
        return category_key(self.type, self.category)

    def to_dict(self) -> Dict[str, object]:
        return {
            "year": self.year,
            "category": self.category,
            "type": self.type,
            "poule": self.poule,
            "winners": list(self.winners),
        }


def is_year_token(value: str) -> bool:
    return YEAR_PATTERN.fullmatch(value) is not None


def is_placeholder(value: Optional[str]) -> bool:
    if value is None:
        return True
    return value.strip() in PLACEHOLDERS


def split_names(text: Optional[str]) -> List[str]:
    """Split a winners cell such as ``"Piet, Klaas en Jan"`` into names."""
    if is_placeholder(text):
        return []
    names: List[str] = []
    for fragment in NAME_SEPARATOR_PATTERN.split(text):
        name = fragment.strip()
        if name and name not in PLACEHOLDERS:
            names.append(name)
    return names


def _single_winner_result(
    year: str, winner: Optional[str], source: Source, category: str
) -> Optional[Result]:
    if is_placeholder(winner):
        return None
    return Result(
        year=int(year),
        category=category,
        type=source.type,
        poule=TOP_POULE,
        winners=(winner.strip(),),
    )


def _cell(cells: Sequence[str], index: int) -> Optional[str]:
    return cells[index] if index < len(cells) else None


def _fixed_width_rows(cells: Sequence[str], width: int) -> Iterable[Tuple[str, ...]]:
    # The first row holds the column headers.
    for index in range(width, len(cells), width):
        year = cells[index]
        if not is_year_token(year):
            continue
        yield tuple(_cell(cells, index + offset) for offset in range(width))


def _parse_zomercyclus(cells: Sequence[str], source: Source) -> List[Result]:
    results: List[Result] = []
    for year, winner in _fixed_width_rows(cells, 2):
        result = _single_winner_result(year, winner, source, source.category)
        if result is not None:
            results.append(result)
    return results


def _parse_tete_a_tete(cells: Sequence[str], source: Source) -> List[Result]:
    results: List[Result] = []
    for year, men, women in _fixed_width_rows(cells, 3):
        for winner, suffix in ((men, "heren"), (women, "dames")):
            result = _single_winner_result(
                year, winner, source, f"{source.category}-{suffix}"
            )
            if result is not None:
                results.append(result)
    return results


def _parse_poule_rows(cells: Sequence[str], source: Source) -> List[Result]:
    # Rows have three or four cells depending on the year, so a row runs from
    # one year token up to the next one. A name made of four digits would be
    # read as a new row.
    results: List[Result] = []
    year_positions = [index for index, cell in enumerate(cells) if is_year_token(cell)]
    for position, start in enumerate(year_positions):
        end = year_positions[position + 1] if position + 1 < len(year_positions) else len(cells)
        row = cells[start + 1 : end]
        if not row:
            continue
        names = split_names(row[0])
        if not names:
            continue
        results.append(
            Result(
                year=int(cells[start]),
                category=source.category,
                type=source.type,
                poule=TOP_POULE,
                winners=tuple(names),
            )
        )
    return results


def parse_results(cells: Sequence[str], source: Source) -> List[Result]:
    """Turn the table cells of ``source`` into Poule A win records."""
    if source.category == ZOMERCYCLUS:
        return _parse_zomercyclus(cells, source)
    if source.category == TETE_A_TETE:
        return _parse_tete_a_tete(cells, source)
    return _parse_poule_rows(cells, source)


__all__ = [
    "DEFAULT_DELAY_SECONDS",
    "DEFAULT_RETRIES",
    "DEFAULT_TIMEOUT_SECONDS",
    "FetchState",
    "HallOfFameError",
    "HttpError",
    "NetworkError",
    "Result",
    "WriteError",
    "backoff_delay",
    "cached_html_path",
    "extract_cells",
    "fetch_html",
    "is_placeholder",
    "is_retryable_status",
    "is_year_token",
    "load_source_html",
    "parse_results",
    "split_names",
]
