"""Client-side validation for the donor, donation, and organization editors.

Each form holds the raw text a user typed and turns it into a typed field
bundle with ``validate()``. Validation failures raise ``FormValidationError``
so the caller can show the message without touching the store.
"""

from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar


_EMAIL_PATTERN = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)

MAX_DONATION_CENTS = 10_000_000 * 100


class FormValidationError(ValueError):
    """User input was rejected before reaching the store."""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class DonorFields:
    first_name: str
    last_name: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: str
    email: str


@dataclass(frozen=True)
class DonationFields:
    donor_id: int
    amount_cents: int
    donation_date: date
    payment_method: str


@dataclass(frozen=True)
class OrganizationFields:
    name: str
    address: str


class RecordForm:
    """Shared shape of the three editors: required labels plus ``validate()``."""

    labels: ClassVar[dict[str, str]] = {}

    def missing_fields(self) -> list[str]:
        return [label for name, label in self.labels.items() if not _text(getattr(self, name))]

    def _require_all(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise FormValidationError(f"Please fill in all fields. Missing: {', '.join(missing)}.")

    def validate(self) -> Any:
        raise NotImplementedError


@dataclass
class DonorForm(RecordForm):
    first_name: str = ""
    last_name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    phone: str = ""
    email: str = ""

    labels: ClassVar[dict[str, str]] = {
        "first_name": "First Name",
        "last_name": "Last Name",
        "street": "Street",
        "city": "City",
        "state": "State",
        "zip_code": "ZIP Code",
        "country": "Country",
        "phone": "Phone",
        "email": "Email",
    }

    @classmethod
    def from_row(cls, row: sqlite3.Row | dict[str, Any]) -> DonorForm:
        return cls(**{field.name: _text(row[field.name]) for field in fields(cls)})

    def validate(self) -> DonorFields:
        self._require_all()
        if not _EMAIL_PATTERN.search(self.email):
            raise FormValidationError("Please enter a valid email address.")
        return DonorFields(**{field.name: _text(getattr(self, field.name)) for field in fields(self)})


def parse_amount_cents(raw_amount: Any) -> int:
    text = _text(raw_amount).lstrip("$").replace(",", "")
    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise FormValidationError("Please enter a valid amount (e.g., 123.45).") from exc

    if not amount.is_finite():
        raise FormValidationError("Please enter a valid amount (e.g., 123.45).")
    exponent = amount.as_tuple().exponent
    if isinstance(exponent, int) and exponent < -2:
        raise FormValidationError("Amounts can have at most two decimal places.")

    cents = int(amount * 100)
    if cents <= 0 or cents > MAX_DONATION_CENTS:
        raise FormValidationError("Donation amount must be between $0.01 and $10,000,000.00.")
    return cents


def parse_donation_date(raw_date: date | str) -> date:
    if isinstance(raw_date, date):
        return raw_date
    try:
        return date.fromisoformat(_text(raw_date))
    except ValueError as exc:
        raise FormValidationError("Please enter the date as YYYY-MM-DD.") from exc


@dataclass
class DonationForm(RecordForm):
    donor_id: str = ""
    amount: str = ""
    donation_date: date | str = ""
    payment_method: str = ""

    labels: ClassVar[dict[str, str]] = {
        "donor_id": "Donor ID",
        "amount": "Amount",
        "donation_date": "Date",
        "payment_method": "Payment Method",
    }

    @classmethod
    def from_row(cls, row: sqlite3.Row | dict[str, Any]) -> DonationForm:
        return cls(
            donor_id=str(row["donor_id"]),
            amount=f"{int(row['amount_cents']) / 100:.2f}",
            donation_date=row["donation_date"],
            payment_method=_text(row["payment_method"]),
        )

    def validate(self) -> DonationFields:
        self._require_all()
        try:
            donor_id = int(_text(self.donor_id))
        except ValueError as exc:
            raise FormValidationError("Donor ID must be a whole number.") from exc

        return DonationFields(
            donor_id=donor_id,
            amount_cents=parse_amount_cents(self.amount),
            donation_date=parse_donation_date(self.donation_date),
            payment_method=_text(self.payment_method),
        )


@dataclass
class OrganizationForm(RecordForm):
    name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    labels: ClassVar[dict[str, str]] = {
        "name": "Name",
        "street": "Street",
        "city": "City",
        "state": "State",
        "zip_code": "ZIP Code",
        "country": "Country",
    }

    @classmethod
    def from_address(cls, name: str | None, address: str | None) -> OrganizationForm:
        """Split a stored ``street, city, state zip, country`` address for editing.

        Addresses that do not have that shape land whole in ``street``.
        """

        clean_address = _text(address)
        parts = [part.strip() for part in clean_address.split(", ") if part.strip()]
        if len(parts) < 4:
            return cls(name=_text(name), street=clean_address)

        state_zip = parts[2].split()
        if len(state_zip) == 2:
            state, zip_code = state_zip
        else:
            state, zip_code = parts[2], ""

        return cls(
            name=_text(name),
            street=parts[0],
            city=parts[1],
            state=state,
            zip_code=zip_code,
            country=parts[3],
        )

    def compose_address(self) -> str:
        return (
            f"{_text(self.street)}, {_text(self.city)}, "
            f"{_text(self.state)} {_text(self.zip_code)}, {_text(self.country)}"
        )

    def validate(self) -> OrganizationFields:
        self._require_all()
        return OrganizationFields(name=_text(self.name), address=self.compose_address())
