from __future__ import annotations

from datetime import date

from donation_tracker.letters import LetterGenerator, format_letter_date, letter_filename
from donation_tracker.store import DonationStore


def _build_store(tmp_path) -> DonationStore:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "letters_test.db"
    store = DonationStore(db_path)
    store.init_db()
    return store


def _add_donor(store: DonationStore, first_name: str, last_name: str) -> int:
    return store.add_donor(
        first_name=first_name,
        last_name=last_name,
        street="12 Harbor Rd",
        city="Portland",
        state="ME",
        zip_code="04101",
        country="USA",
        phone="555-0100",
        email=f"{first_name.lower()}@example.org",
    )


def test_letters_sum_only_gifts_in_the_year(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    store.set_organization("Harborlight Fund", "1 Main St, Portland, ME 04101, USA")

    avery_id = _add_donor(store, "Avery", "Mills")
    river_id = _add_donor(store, "River", "Lane")
    _add_donor(store, "Kai", "Parker")

    store.add_donation(avery_id, 10000, date(2024, 3, 1), "Check")
    store.add_donation(avery_id, 5050, date(2024, 11, 20), "Card")
    store.add_donation(avery_id, 7500, date(2023, 12, 31), "Cash")
    store.add_donation(river_id, 2000, date(2023, 5, 5), "Cash")

    output_dir = tmp_path / "letters"
    run = LetterGenerator(store, output_dir).generate(2024, today=date(2025, 1, 15))

    assert run.ok
    assert run.failures == []
    assert run.written == [output_dir / "Avery_Mills_2024_donation_letter.txt"]
    assert sorted(path.name for path in output_dir.iterdir()) == ["Avery_Mills_2024_donation_letter.txt"]

    text = run.written[0].read_text(encoding="utf-8")
    assert text.splitlines() == [
        "Harborlight Fund",
        "1 Main St, Portland, ME 04101, USA",
        "",
        "January 15, 2025",
        "",
        "Avery Mills",
        "12 Harbor Rd",
        "Portland, ME 04101",
        "USA",
        "",
        "Dear Avery,",
        "",
        "Thank you for your generous total donation of $150.50 to Harborlight Fund in 2024.",
        "Your support makes a significant difference to our mission.",
        "",
        "Sincerely,",
        "Harborlight Fund",
    ]


def test_letters_for_year_without_gifts_write_nothing(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    donor_id = _add_donor(store, "Avery", "Mills")
    store.add_donation(donor_id, 10000, date(2024, 3, 1), "Check")

    output_dir = tmp_path / "letters"
    run = LetterGenerator(store, output_dir).generate(2019)

    assert run.ok
    assert run.written == []
    assert output_dir.is_dir()
    assert list(output_dir.iterdir()) == []


def test_same_named_donors_share_one_letter_file(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    first_id = _add_donor(store, "Sam", "Ng")
    second_id = _add_donor(store, "Sam", "Ng")
    store.add_donation(first_id, 1000, date(2024, 2, 1), "Cash")
    store.add_donation(second_id, 2000, date(2024, 2, 1), "Cash")

    output_dir = tmp_path / "letters"
    run = LetterGenerator(store, output_dir).generate(2024)

    assert len(run.written) == 2
    assert [path.name for path in output_dir.iterdir()] == ["Sam_Ng_2024_donation_letter.txt"]


def test_write_failure_is_reported_and_other_letters_continue(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    avery_id = _add_donor(store, "Avery", "Mills")
    river_id = _add_donor(store, "River", "Lane")
    store.add_donation(avery_id, 1000, date(2024, 2, 1), "Cash")
    store.add_donation(river_id, 2000, date(2024, 2, 1), "Cash")

    output_dir = tmp_path / "letters"
    blocked = output_dir / letter_filename("River", "Lane", 2024)
    blocked.mkdir(parents=True)

    run = LetterGenerator(store, output_dir).generate(2024)

    assert not run.ok
    assert [failure.donor_id for failure in run.failures] == [river_id]
    assert run.failures[0].path == blocked
    assert run.written == [output_dir / "Avery_Mills_2024_donation_letter.txt"]


def test_letters_without_organization_use_blank_letterhead(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    donor_id = _add_donor(store, "Avery", "Mills")
    store.add_donation(donor_id, 123456, date(2024, 2, 1), "Wire")

    run = LetterGenerator(store, tmp_path / "letters").generate(2024, today=date(2024, 12, 1))

    lines = run.written[0].read_text(encoding="utf-8").splitlines()
    assert lines[0] == ""
    assert lines[3] == "December 1, 2024"
    assert "total donation of $1,234.56 to  in 2024." in lines[12]


def test_letter_date_format_has_no_zero_padding() -> None:
    assert format_letter_date(date(2024, 3, 5)) == "March 5, 2024"


def test_names_with_path_separators_stay_in_output_dir(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = _build_store(tmp_path)
    donor_id = _add_donor(store, "../../escaped", "x\\y")
    store.add_donation(donor_id, 1000, date(2024, 2, 1), "Cash")

    output_dir = tmp_path / "a" / "letters"
    run = LetterGenerator(store, output_dir).generate(2024)

    assert run.ok
    assert [path.parent for path in run.written] == [output_dir]
    assert [path.name for path in output_dir.iterdir()] == [".._.._escaped_x_y_2024_donation_letter.txt"]
    assert not (tmp_path / "escaped_x_y_2024_donation_letter.txt").exists()
