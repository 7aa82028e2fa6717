"""Streamlit app for donor records, donations, and year-end letters."""

from __future__ import annotations

import html
from dataclasses import asdict
from datetime import date
from typing import Iterable

import pandas as pd
import streamlit as st

from donation_tracker import (
    AppConfig,
    DonationForm,
    DonationStore,
    DonorForm,
    DonorNavigator,
    FormValidationError,
    LetterGenerator,
    OrganizationForm,
    StoreError,
    donor_display_name,
    format_currency,
    letter_year_bounds,
)
from donation_tracker.config import donation_date_bounds
from donation_tracker.logging_setup import configure_logging


CONFIG = AppConfig()

DONOR_FIELD_LABELS = DonorForm.labels


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
          :root {
            --dt-green-700: #1d4d3a;
            --dt-green-500: #2f7a5b;
            --dt-cloud-100: #f4f6f3;
            --dt-text: #1b1b1b;
            --dt-muted: #4a4a48;
          }

          .stApp {
            background: linear-gradient(170deg, var(--dt-cloud-100) 0%, #fbfcfa 100%);
            color: var(--dt-text);
          }

          .dt-hero {
            background: linear-gradient(124deg, var(--dt-green-700), var(--dt-green-500));
            border-radius: 16px;
            color: #ffffff;
            padding: 1.1rem 1.25rem;
            margin-bottom: 1rem;
          }

          .dt-hero h1,
          .dt-hero p {
            color: #ffffff !important;
            margin: 0;
          }

          .dt-hero p {
            margin-top: 0.45rem;
            white-space: pre-line;
            opacity: 0.93;
          }

          .section-note {
            color: var(--dt-muted);
            font-weight: 500;
            margin-top: -0.2rem;
            margin-bottom: 0.8rem;
          }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _hero(store: DonationStore) -> None:
    try:
        organization = store.get_organization()
    except StoreError as exc:
        st.error(f"Could not read organization details: {exc}")
        organization = None

    if organization is None:
        banner = "Organization: Not set"
    else:
        banner = f"Organization: {organization['name'] or ''}\n{organization['address'] or ''}"

    st.markdown(
        f"""
        <div class="dt-hero">
          <h1>Donation Tracker</h1>
          <p>{html.escape(banner)}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _section(title: str, note: str) -> None:
    st.markdown(f"### {title}")
    st.markdown(f"<p class='section-note'>{note}</p>", unsafe_allow_html=True)


def _table_or_info(frame: pd.DataFrame, empty_message: str) -> None:
    if frame.empty:
        st.info(empty_message)
        return
    st.dataframe(frame, use_container_width=True, hide_index=True)


def _rows_to_dicts(rows: Iterable) -> list[dict]:
    return [dict(row) for row in rows]


def _flash(message: str) -> None:
    st.session_state.flash_message = message


def _outcome_message(changed: bool, success: str, record: str) -> str:
    """Flash text for a write that may have matched no row."""

    return success if changed else f"{record} no longer exists."


def _show_flash() -> None:
    message = st.session_state.pop("flash_message", None)
    if message:
        st.success(message)


def _navigator(store: DonationStore) -> DonorNavigator:
    navigator = st.session_state.get("donor_navigator")
    if navigator is None:
        navigator = DonorNavigator(store)
        navigator.load_first()
        st.session_state.donor_navigator = navigator
    return navigator


def _donor_text_inputs(form: DonorForm, key_prefix: str) -> DonorForm:
    values = {}
    left, right = st.columns(2)
    for position, (name, label) in enumerate(DONOR_FIELD_LABELS.items()):
        column = left if position % 2 == 0 else right
        with column:
            values[name] = st.text_input(
                f"{label} *",
                value=getattr(form, name),
                key=f"{key_prefix}-{name}",
            )
    return DonorForm(**values)


def _donations_frame(rows: list[dict]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "ID": row["id"],
                "Date": row["donation_date"],
                "Amount": format_currency(int(row["amount_cents"])),
                "Payment Method": row.get("payment_method") or "-",
            }
            for row in rows
        ]
    )


def _render_navigation_buttons(navigator: DonorNavigator) -> None:
    first, previous, following, last = st.columns(4)
    with first:
        st.button(
            "|< First",
            key="nav-first",
            disabled=not navigator.can_move_first,
            on_click=navigator.load_first,
            use_container_width=True,
        )
    with previous:
        st.button(
            "<< Previous",
            key="nav-previous",
            disabled=not navigator.can_move_previous,
            on_click=navigator.load_previous,
            use_container_width=True,
        )
    with following:
        st.button(
            "Next >>",
            key="nav-next",
            disabled=not navigator.can_move_next,
            on_click=navigator.load_next,
            use_container_width=True,
        )
    with last:
        st.button(
            "Last >|",
            key="nav-last",
            disabled=not navigator.can_move_last,
            on_click=navigator.load_last,
            use_container_width=True,
        )


def _render_edit_donor(store: DonationStore, navigator: DonorNavigator, donor: dict) -> None:
    donor_id = int(donor["id"])
    with st.expander("Edit Donor"):
        with st.form(f"donor-edit-form-{donor_id}"):
            st.text_input("ID", value=str(donor_id), disabled=True)
            form = _donor_text_inputs(DonorForm.from_row(donor), key_prefix=f"donor-edit-{donor_id}")
            if st.form_submit_button("Save Donor", use_container_width=True):
                try:
                    fields = form.validate()
                    updated = store.update_donor(donor_id, **asdict(fields))
                except (FormValidationError, StoreError) as exc:
                    st.error(str(exc))
                else:
                    _flash(_outcome_message(updated, "Donor updated successfully.", f"Donor #{donor_id}"))
                    navigator.after_donor_changed()
                    st.rerun()

    with st.expander("Delete Donor"):
        confirmed = st.checkbox(
            "Delete this donor and all associated donations",
            key=f"donor-delete-confirm-{donor_id}",
        )
        if st.button("Delete Donor", key=f"donor-delete-{donor_id}", disabled=not confirmed):
            try:
                deleted = store.delete_donor(donor_id)
            except StoreError as exc:
                st.error(f"Failed to delete donor: {exc}")
            else:
                _flash(
                    _outcome_message(
                        deleted,
                        "Donor and associated donations deleted successfully.",
                        f"Donor #{donor_id}",
                    )
                )
                navigator.after_donor_deleted()
                st.rerun()


def _render_add_donation(store: DonationStore, navigator: DonorNavigator, donor_id: int) -> None:
    with st.expander("Add Donation"):
        with st.form(f"donation-add-form-{donor_id}", clear_on_submit=True):
            donor_id_text = st.text_input("Donor ID *", value=str(donor_id))
            amount = st.text_input("Amount *", placeholder="e.g. 125.00")
            earliest, latest = donation_date_bounds()
            donation_date = st.date_input(
                "Date *",
                value=date.today(),
                min_value=earliest,
                max_value=latest,
            )
            payment_method = st.text_input("Payment Method *", placeholder="Check, Cash, Card...")
            if st.form_submit_button("Add Donation", use_container_width=True):
                form = DonationForm(
                    donor_id=donor_id_text,
                    amount=amount,
                    donation_date=donation_date,
                    payment_method=payment_method,
                )
                try:
                    fields = form.validate()
                    store.add_donation(**asdict(fields))
                except (FormValidationError, StoreError) as exc:
                    st.error(str(exc))
                else:
                    _flash("Donation added successfully.")
                    navigator.reload()
                    st.rerun()


def _render_edit_donation(store: DonationStore, navigator: DonorNavigator, donations: list[dict]) -> None:
    if not donations:
        return

    donation_map = {int(row["id"]): row for row in donations}
    selected_id = st.selectbox(
        "Select Donation",
        options=list(donation_map.keys()),
        format_func=lambda donation_id: (
            f"#{donation_id} {donation_map[donation_id]['donation_date']} "
            f"{format_currency(int(donation_map[donation_id]['amount_cents']))}"
        ),
        key="donation-select",
    )

    try:
        current = store.get_donation(selected_id)
    except StoreError as exc:
        st.error(f"Failed to load donation: {exc}")
        return
    if current is None:
        st.info("That donation no longer exists.")
        return

    prefill = DonationForm.from_row(current)
    stored_date = date.fromisoformat(str(prefill.donation_date))
    earliest, latest = donation_date_bounds(stored_date)
    with st.expander("Edit Donation"):
        with st.form(f"donation-edit-form-{selected_id}"):
            st.text_input("ID", value=str(selected_id), disabled=True)
            donor_id_text = st.text_input("Donor ID *", value=prefill.donor_id)
            amount = st.text_input("Amount *", value=prefill.amount)
            donation_date = st.date_input(
                "Date *",
                value=stored_date,
                min_value=earliest,
                max_value=latest,
            )
            payment_method = st.text_input("Payment Method *", value=prefill.payment_method)
            if st.form_submit_button("Save Donation", use_container_width=True):
                form = DonationForm(
                    donor_id=donor_id_text,
                    amount=amount,
                    donation_date=donation_date,
                    payment_method=payment_method,
                )
                try:
                    fields = form.validate()
                    updated = store.update_donation(selected_id, **asdict(fields))
                except (FormValidationError, StoreError) as exc:
                    st.error(str(exc))
                else:
                    _flash(
                        _outcome_message(updated, "Donation updated successfully.", f"Donation #{selected_id}")
                    )
                    navigator.reload()
                    st.rerun()

    with st.expander("Delete Donation"):
        confirmed = st.checkbox(
            "Delete this donation",
            key=f"donation-delete-confirm-{selected_id}",
        )
        if st.button("Delete Donation", key=f"donation-delete-{selected_id}", disabled=not confirmed):
            try:
                deleted = store.delete_donation(selected_id)
            except StoreError as exc:
                st.error(f"Failed to delete donation: {exc}")
            else:
                _flash(_outcome_message(deleted, "Donation deleted successfully.", f"Donation #{selected_id}"))
                navigator.reload()
                st.rerun()


def render_browser_tab(store: DonationStore, navigator: DonorNavigator) -> None:
    _section("Donor Browser", "Step through donors in the order they were added.")
    _render_navigation_buttons(navigator)

    error = navigator.pop_error()
    if error:
        st.error(error)

    if navigator.donor is None:
        st.info("No donor loaded. Add a donor or open one from search.")
        return

    donor = dict(navigator.donor)
    donor_id = int(donor["id"])
    position = (navigator.current_index or 0) + 1
    st.caption(f"Donor {position} of {len(navigator.donor_ids)} (ID #{donor_id})")

    left, right = st.columns([1, 1.3], gap="large")
    with left:
        st.markdown(f"#### {donor_display_name(donor)}")
        st.markdown(
            "\n".join(
                [
                    f"{donor.get('street') or '-'}  ",
                    f"{donor.get('city') or '-'}, {donor.get('state') or '-'} {donor.get('zip_code') or ''}  ",
                    f"{donor.get('country') or '-'}  ",
                    f"Phone: {donor.get('phone') or '-'}  ",
                    f"Email: {donor.get('email') or '-'}",
                ]
            )
        )
        _render_edit_donor(store, navigator, donor)

    with right:
        donations = _rows_to_dicts(navigator.donations)
        total_cents = sum(int(row["amount_cents"]) for row in donations)
        st.markdown("#### Donations")
        st.metric("Lifetime Giving", format_currency(total_cents))
        _table_or_info(_donations_frame(donations), "No donations recorded for this donor yet.")
        _render_add_donation(store, navigator, donor_id)
        _render_edit_donation(store, navigator, donations)


def render_search_tab(store: DonationStore, navigator: DonorNavigator) -> None:
    _section(
        "Donor Search",
        "Search by name, email, phone, city, state, ZIP, or country. Matching ignores case.",
    )

    search_term = st.text_input("Search Donors", placeholder="e.g. Avery or example.org")
    include_all = st.checkbox("Show all donors", value=not search_term)

    try:
        donor_rows = _rows_to_dicts(store.search_donors(search_term, include_all=include_all))
    except StoreError as exc:
        st.error(f"Search failed: {exc}")
        return

    results_df = pd.DataFrame(
        [
            {
                "ID": row["id"],
                "First Name": row.get("first_name") or "",
                "Last Name": row.get("last_name") or "",
                "City": row.get("city") or "",
                "State": row.get("state") or "",
                "Country": row.get("country") or "",
                "Phone": row.get("phone") or "",
                "Email": row.get("email") or "",
                "Lifetime Giving": format_currency(int(row["total_given_cents"])),
                "Last Gift": row.get("last_donation_date") or "-",
            }
            for row in donor_rows
        ]
    )
    _table_or_info(results_df, "No donors matched your search.")

    if donor_rows:
        donor_map = {int(row["id"]): row for row in donor_rows}
        selected_id = st.selectbox(
            "Open Donor",
            options=list(donor_map.keys()),
            format_func=lambda donor_id: f"{donor_display_name(donor_map[donor_id])} (#{donor_id})",
            key="search-open-select",
        )
        if st.button("Open in Browser", key="search-open"):
            if navigator.select(selected_id):
                _flash(f"Opened {donor_display_name(donor_map[selected_id])} in the Donor Browser tab.")
            st.rerun()


def render_add_donor_tab(store: DonationStore, navigator: DonorNavigator) -> None:
    _section("Add Donor", "All fields are required.")

    with st.form("donor-create-form", clear_on_submit=True):
        form = _donor_text_inputs(DonorForm(), key_prefix="donor-create")
        if st.form_submit_button("Add Donor", use_container_width=True):
            try:
                fields = form.validate()
                donor_id = store.add_donor(**asdict(fields))
            except (FormValidationError, StoreError) as exc:
                st.error(str(exc))
            else:
                _flash("Donor added successfully.")
                navigator.after_donor_added(donor_id)
                st.rerun()


def render_organization_tab(store: DonationStore) -> None:
    _section("Organization", "Name and address printed on every donation letter.")

    try:
        organization = store.get_organization()
    except StoreError as exc:
        st.error(f"Could not read organization details: {exc}")
        return

    if organization is None:
        prefill = OrganizationForm()
    else:
        prefill = OrganizationForm.from_address(organization["name"], organization["address"])

    with st.form("organization-form"):
        form = OrganizationForm(
            name=st.text_input("Name *", value=prefill.name),
            street=st.text_input("Street *", value=prefill.street),
            city=st.text_input("City *", value=prefill.city),
            state=st.text_input("State *", value=prefill.state),
            zip_code=st.text_input("ZIP Code *", value=prefill.zip_code),
            country=st.text_input("Country *", value=prefill.country),
        )
        if st.form_submit_button("Save Organization", use_container_width=True):
            try:
                fields = form.validate()
                store.set_organization(fields.name, fields.address)
            except (FormValidationError, StoreError) as exc:
                st.error(str(exc))
            else:
                _flash("Organization details saved.")
                st.rerun()


def render_letters_tab(store: DonationStore, config: AppConfig) -> None:
    _section(
        "Year-End Letters",
        f"One thank-you letter per donor who gave during the year, saved to '{config.letters_dir}'.",
    )

    min_year, max_year = letter_year_bounds()
    year = int(
        st.number_input(
            "Letter Year",
            min_value=min_year,
            max_value=max_year,
            value=min(date.today().year, max_year),
            step=1,
        )
    )

    try:
        known_years = store.donation_years()
        recipients = _rows_to_dicts(store.donor_totals_for_year(year))
    except StoreError as exc:
        st.error(f"Could not read donation totals: {exc}")
        return

    if known_years:
        st.caption("Years with donations: " + ", ".join(str(value) for value in known_years))

    preview_df = pd.DataFrame(
        [
            {
                "ID": row["id"],
                "Donor": donor_display_name(row),
                "Gifts": int(row["donation_count"]),
                "Total": format_currency(int(row["total_cents"])),
            }
            for row in recipients
        ]
    )
    _table_or_info(preview_df, f"No donations dated in {year}.")

    if st.button("Generate Donation Letters", key="letters-generate", disabled=not recipients):
        try:
            run = LetterGenerator(store, config.letters_dir).generate(year)
        except (StoreError, OSError) as exc:
            st.error(f"Failed to generate donation letters: {exc}")
            return

        if run.ok:
            st.success(f"Generated {len(run.written)} letters in the '{config.letters_dir}' folder.")
        else:
            st.warning(
                f"Generated {len(run.written)} letters; {len(run.failures)} could not be written. "
                "Check file permissions."
            )
            failures_df = pd.DataFrame(
                [
                    {"Donor ID": failure.donor_id, "File": str(failure.path), "Error": failure.reason}
                    for failure in run.failures
                ]
            )
            _table_or_info(failures_df, "No failures.")


def main() -> None:
    st.set_page_config(
        page_title="Donation Tracker",
        page_icon=":handshake:",
        layout="wide",
    )
    configure_logging(CONFIG.log_level)

    store = DonationStore(CONFIG.db_path)
    try:
        store.init_db()
    except StoreError as exc:
        st.error(str(exc))
        st.stop()

    navigator = _navigator(store)

    _inject_styles()
    _hero(store)
    _show_flash()

    tabs = st.tabs(
        [
            "Donor Browser",
            "Donor Search",
            "Add Donor",
            "Organization",
            "Year-End Letters",
        ]
    )

    with tabs[0]:
        render_browser_tab(store, navigator)
    with tabs[1]:
        render_search_tab(store, navigator)
    with tabs[2]:
        render_add_donor_tab(store, navigator)
    with tabs[3]:
        render_organization_tab(store)
    with tabs[4]:
        render_letters_tab(store, CONFIG)


if __name__ == "__main__":
    main()
