"""Application settings for the donation tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path


EARLIEST_DONATION_DATE = date(1970, 1, 1)
FIRST_LETTER_YEAR = 2000
LETTER_YEARS_AHEAD = 5


@dataclass(frozen=True)
class AppConfig:
    db_path: Path = field(default_factory=lambda: Path(".data/donations.db"))
    letters_dir: Path = field(default_factory=lambda: Path("letters"))
    log_level: str = "INFO"


def letter_year_bounds(today: date | None = None) -> tuple[int, int]:
    """Inclusive range of years the letter form accepts."""

    anchor = today or date.today()
    return FIRST_LETTER_YEAR, anchor.year + LETTER_YEARS_AHEAD


def donation_date_bounds(stored: date | None = None, today: date | None = None) -> tuple[date, date]:
    """Range for donation date pickers, widened to include an already stored date."""

    anchor = today or date.today()
    earliest = EARLIEST_DONATION_DATE
    latest = date(anchor.year + LETTER_YEARS_AHEAD, 12, 31)
    if stored is not None:
        earliest = min(earliest, stored)
        latest = max(latest, stored)
    return earliest, latest
