"""Year-end thank-you letters summing each donor's giving for a year."""

from __future__ import annotations

import logging
import re
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .store import DonationStore, format_currency


logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass(frozen=True)
class LetterFailure:
    donor_id: int
    path: Path
    reason: str


@dataclass
class LetterRun:
    year: int
    written: list[Path] = field(default_factory=list)
    failures: list[LetterFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _filename_part(value: str | None) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", value or "")


def letter_filename(first_name: str | None, last_name: str | None, year: int) -> str:
    """Build the letter file name; separators in names become underscores."""

    return f"{_filename_part(first_name)}_{_filename_part(last_name)}_{year}_donation_letter.txt"


def format_letter_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def render_letter(
    organization_name: str,
    organization_address: str,
    recipient: sqlite3.Row | dict[str, Any],
    year: int,
    today: date,
) -> str:
    first_name = recipient["first_name"] or ""
    last_name = recipient["last_name"] or ""
    total = format_currency(int(recipient["total_cents"]))

    lines = [
        organization_name,
        organization_address,
        "",
        format_letter_date(today),
        "",
        f"{first_name} {last_name}".strip(),
        recipient["street"] or "",
        f"{recipient['city'] or ''}, {recipient['state'] or ''} {recipient['zip_code'] or ''}".rstrip(),
        recipient["country"] or "",
        "",
        f"Dear {first_name},",
        "",
        f"Thank you for your generous total donation of {total} to {organization_name} in {year}.",
        "Your support makes a significant difference to our mission.",
        "",
        "Sincerely,",
        organization_name,
    ]
    return "\n".join(lines) + "\n"


class LetterGenerator:
    """Write one letter per donor who gave during a given year."""

    def __init__(self, store: DonationStore, output_dir: str | Path) -> None:
        self.store = store
        self.output_dir = Path(output_dir)

    def generate(self, year: int, today: date | None = None) -> LetterRun:
        letter_date = today or date.today()
        organization = self.store.get_organization()
        organization_name = (organization["name"] if organization else None) or ""
        organization_address = (organization["address"] if organization else None) or ""
        recipients = self.store.donor_totals_for_year(year)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        run = LetterRun(year=year)

        for recipient in recipients:
            path = self.output_dir / letter_filename(
                recipient["first_name"],
                recipient["last_name"],
                year,
            )
            text = render_letter(
                organization_name=organization_name,
                organization_address=organization_address,
                recipient=recipient,
                year=year,
                today=letter_date,
            )
            try:
                path.write_text(text, encoding="utf-8")
            except OSError as exc:
                logger.warning("Could not write letter %s: %s", path, exc)
                run.failures.append(
                    LetterFailure(donor_id=int(recipient["id"]), path=path, reason=str(exc))
                )
                continue

            logger.info("Wrote %s letter for donor #%s to %s", year, recipient["id"], path)
            run.written.append(path)

        return run
