from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    NIFTY50 = "NIFTY50"
    NIFTYNEXT50 = "NIFTYNEXT50"
    OTHER = "OTHER"


class ThresholdPolicy(str, Enum):
    ABSOLUTE = "absolute"   # move in either direction
    DOWNSIDE = "downside"   # falls only


@dataclass(frozen=True)
class IndexQuote:
    label: str
    change: float
    close: float | None
    category: Category


@dataclass(frozen=True)
class FundRecord:
    code: str
    name: str
    nav: float | None
    nav_date: str
    previous_nav: float | None
    previous_date: str
    change_percent: float | None
    category: Category


def compute_change_percent(nav: float | None, previous_nav: float | None) -> float | None:
    # None means absent; a zero previous NAV has no defined percentage move.
    if nav is None or previous_nav is None or previous_nav == 0:
        return None
    return (nav - previous_nav) / previous_nav * 100


def classify_fund(name: str) -> Category:
    lower = name.lower()
    if "nifty next 50" in lower or "next 50" in lower:
        return Category.NIFTYNEXT50
    if "nifty 50" in lower:
        return Category.NIFTY50
    return Category.OTHER
