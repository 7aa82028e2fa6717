from __future__ import annotations

from datetime import date

import pytest

from donation_tracker.forms import (
    DonationForm,
    DonorForm,
    FormValidationError,
    OrganizationForm,
    parse_amount_cents,
)


def _donor_form(**overrides: str) -> DonorForm:
    values = {
        "first_name": " Jane ",
        "last_name": "Doe",
        "street": "12 Harbor Rd",
        "city": "Portland",
        "state": "ME",
        "zip_code": "04101",
        "country": "USA",
        "phone": "555-0100",
        "email": "Jane@EXAMPLE.com",
    }
    values.update(overrides)
    return DonorForm(**values)


def test_donor_form_trims_and_returns_fields() -> None:
    fields = _donor_form().validate()

    assert fields.first_name == "Jane"
    assert fields.email == "Jane@EXAMPLE.com"


def test_donor_form_requires_every_field() -> None:
    form = _donor_form(city="  ", phone="")

    assert form.missing_fields() == ["City", "Phone"]
    with pytest.raises(FormValidationError, match="City, Phone"):
        form.validate()


def test_donor_form_rejects_bad_email() -> None:
    with pytest.raises(FormValidationError, match="email"):
        _donor_form(email="jane-at-example").validate()


def test_donation_form_parses_amount_and_date() -> None:
    fields = DonationForm(
        donor_id=" 7 ",
        amount="$1,250.5",
        donation_date="2024-11-20",
        payment_method="Check",
    ).validate()

    assert fields.donor_id == 7
    assert fields.amount_cents == 125050
    assert fields.donation_date == date(2024, 11, 20)
    assert fields.payment_method == "Check"


@pytest.mark.parametrize("raw_amount", ["abc", "0", "-5", "12.345", "10000000.01", "NaN"])
def test_amount_outside_accepted_input_is_rejected(raw_amount: str) -> None:
    with pytest.raises(FormValidationError):
        parse_amount_cents(raw_amount)


def test_amount_upper_bound_is_inclusive() -> None:
    assert parse_amount_cents("10000000.00") == 1_000_000_000


def test_donation_form_rejects_unparseable_date_and_donor_id() -> None:
    with pytest.raises(FormValidationError, match="YYYY-MM-DD"):
        DonationForm(donor_id="1", amount="5", donation_date="20/11/2024", payment_method="Cash").validate()

    with pytest.raises(FormValidationError, match="whole number"):
        DonationForm(donor_id="one", amount="5", donation_date=date(2024, 1, 1), payment_method="Cash").validate()


def test_donation_form_prefills_from_row() -> None:
    form = DonationForm.from_row(
        {"donor_id": 3, "amount_cents": 15050, "donation_date": "2024-11-20", "payment_method": "Card"}
    )

    assert form.amount == "150.50"
    assert form.donor_id == "3"
    assert form.validate().amount_cents == 15050


def test_organization_form_composes_and_splits_address() -> None:
    form = OrganizationForm(
        name="Harborlight Fund",
        street="1 Main St",
        city="Portland",
        state="ME",
        zip_code="04101",
        country="USA",
    )
    fields = form.validate()

    assert fields.address == "1 Main St, Portland, ME 04101, USA"
    assert OrganizationForm.from_address(fields.name, fields.address) == form


def test_organization_form_keeps_unusual_address_in_street() -> None:
    form = OrganizationForm.from_address("Harborlight Fund", "PO Box 12")

    assert form.street == "PO Box 12"
    assert form.city == ""
    with pytest.raises(FormValidationError):
        form.validate()
