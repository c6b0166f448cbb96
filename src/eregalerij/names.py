"""Normalisation of winner names so spelling variants end up as one player."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

LOGGER = logging.getLogger(__name__)

ACCENT_TRANSLATION = str.maketrans(
    {
        "á": "a",
        "à": "a",
        "â": "a",
        "ä": "a",
        "é": "e",
        "è": "e",
        "ê": "e",
        "ë": "e",
        "í": "i",
        "ì": "i",
        "î": "i",
        "ï": "i",
        "ó": "o",
        "ò": "o",
        "ô": "o",
        "ö": "o",
        "ú": "u",
        "ù": "u",
        "û": "u",
        "ü": "u",
        "ç": "c",
        "ñ": "n",
    }
)
ACCENTED_CHARACTERS = frozenset("áàâäéèêëíìîïóòôöúùûüçñ")

# Known spellings of the same person, keyed by normalised raw name. Extra
# entries can be supplied at run time with ``--name-mapping``.
NAME_MAPPING: Dict[str, str] = {}


def normalize_name(value: str) -> str:
    normalized = value.lower().strip().translate(ACCENT_TRANSLATION)
    return re.sub(r"\s+", " ", normalized)


def count_diacritics(value: str) -> int:
    return sum(1 for char in value.lower() if char in ACCENTED_CHARACTERS)


def build_name_mapping(*tables: Mapping[str, str]) -> Dict[str, str]:
    """Merge mapping tables, later tables overriding earlier ones.

    Keys are normalised so that lookups match regardless of how the table was
    spelled.
    """

    merged: Dict[str, str] = {}
    for table in tables:
        for raw, canonical in table.items():
            canonical = canonical.strip()
            if not canonical:
                continue
            merged[normalize_name(raw)] = canonical
    return merged


def load_name_mapping(path: Path) -> Dict[str, str]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of name mappings")
    mapping: Dict[str, str] = {}
    for raw, canonical in data.items():
        if not isinstance(canonical, str):
            raise ValueError(f"{path}: mapping for {raw!r} is not a string")
        mapping[str(raw)] = canonical
    LOGGER.info("Loaded %d name mappings from %s", len(mapping), path)
    return mapping


@dataclass(frozen=True)
class CanonicalName:
    display_name: str
    key: str
    mapped: bool = False


def canonicalize(raw: str, mapping: Optional[Mapping[str, str]] = None) -> CanonicalName:
    """Resolve a raw winner name to its display candidate and grouping key."""
    table = NAME_MAPPING if mapping is None else mapping
    candidate = raw.strip()
    mapped_name = table.get(normalize_name(raw))
    if mapped_name is not None:
        return CanonicalName(
            display_name=mapped_name,
            key=normalize_name(mapped_name),
            mapped=True,
        )
    return CanonicalName(display_name=candidate, key=normalize_name(candidate))


__all__ = [
    "CanonicalName",
    "NAME_MAPPING",
    "build_name_mapping",
    "canonicalize",
    "count_diacritics",
    "load_name_mapping",
    "normalize_name",
]
