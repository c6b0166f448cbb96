"""Configured result pages of the Zwijntje hall of fame."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

CHAMPIONSHIP = "championship"
COMPETITION = "competition"

ZWIJNTJE_BASE_URL = "https://www.zwijntje.nl/vereniging/eregalerij/"


@dataclass(frozen=True)
class Source:
    name: str
    url: str
    type: str
    category: str

    @property
    def key(self) -> str:
        return category_key(self.type, self.category)

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "url": self.url}


DATA_SOURCES: Tuple[Source, ...] = (
    Source(
        name="Doubletten Kampioenschappen",
        url=f"{ZWIJNTJE_BASE_URL}clubkampioenschappen/doubletten/",
        type=CHAMPIONSHIP,
        category="doubletten",
    ),
    Source(
        name="Mix Kampioenschappen",
        url=f"{ZWIJNTJE_BASE_URL}clubkampioenschappen/mix/",
        type=CHAMPIONSHIP,
        category="mix",
    ),
    Source(
        name="Tête-à-tête Kampioenschappen",
        url=f"{ZWIJNTJE_BASE_URL}clubkampioenschappen/tete-a-tete/",
        type=CHAMPIONSHIP,
        category="tete-a-tete",
    ),
    Source(
        name="Tripletten Kampioenschappen",
        url=f"{ZWIJNTJE_BASE_URL}clubkampioenschappen/tripletten/",
        type=CHAMPIONSHIP,
        category="tripletten",
    ),
    Source(
        name="Doubletten Competities",
        url=f"{ZWIJNTJE_BASE_URL}clubcompetities/doubletten/",
        type=COMPETITION,
        category="doubletten",
    ),
    Source(
        name="Tripletten Competities",
        url=f"{ZWIJNTJE_BASE_URL}clubcompetities/tripletten/",
        type=COMPETITION,
        category="tripletten",
    ),
    Source(
        name="Zomercyclus",
        url=f"{ZWIJNTJE_BASE_URL}clubcompetities/zomercyclus/",
        type=COMPETITION,
        category="zomercyclus",
    ),
)

# Category keys understood by the hall of fame table in the browser.
CATEGORY_COLUMNS: Dict[str, str] = {
    "championship_doubletten": "champ-doubletten",
    "championship_mix": "champ-mix",
    "championship_tete-a-tete-heren": "champ-tete-heren",
    "championship_tete-a-tete-dames": "champ-tete-dames",
    "championship_tripletten": "champ-tripletten",
    "competition_doubletten": "comp-doubletten",
    "competition_tripletten": "comp-tripletten",
    "competition_zomercyclus": "comp-zomer",
}


def category_key(type_: str, category: str) -> str:
    return f"{type_}_{category}"


def is_known_category_key(key: str) -> bool:
    return key in CATEGORY_COLUMNS


__all__ = [
    "CATEGORY_COLUMNS",
    "CHAMPIONSHIP",
    "COMPETITION",
    "DATA_SOURCES",
    "Source",
    "category_key",
    "is_known_category_key",
]
