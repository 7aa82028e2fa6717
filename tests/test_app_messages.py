from __future__ import annotations

from datetime import date

from donation_tracker.store import DonationStore
from donation_tracker_app import _outcome_message


def _build_store(tmp_path) -> DonationStore:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "app_messages_test.db"
    store = DonationStore(db_path)
    store.init_db()
    return store


def test_repeated_delete_reports_missing_record(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    donor_id = store.add_donor("Avery", "Mills", "1 Main St", "Portland", "ME", "04101", "USA", "555-0100", "a@example.org")
    donation_id = store.add_donation(donor_id, 1000, date(2024, 2, 1), "Cash")

    first = store.delete_donation(donation_id)
    second = store.delete_donation(donation_id)

    assert _outcome_message(first, "Donation deleted successfully.", f"Donation #{donation_id}") == (
        "Donation deleted successfully."
    )
    assert _outcome_message(second, "Donation deleted successfully.", f"Donation #{donation_id}") == (
        f"Donation #{donation_id} no longer exists."
    )


def test_update_of_removed_donation_reports_missing_record(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    donor_id = store.add_donor("Avery", "Mills", "1 Main St", "Portland", "ME", "04101", "USA", "555-0100", "a@example.org")
    donation_id = store.add_donation(donor_id, 1000, date(2024, 2, 1), "Cash")
    store.delete_donor(donor_id)

    updated = store.update_donation(donation_id, donor_id, 2000, date(2024, 3, 1), "Check")

    assert updated is False
    assert _outcome_message(updated, "Donation updated successfully.", f"Donation #{donation_id}") == (
        f"Donation #{donation_id} no longer exists."
    )
    assert _outcome_message(store.delete_donor(donor_id), "Donor deleted.", f"Donor #{donor_id}") == (
        f"Donor #{donor_id} no longer exists."
    )
