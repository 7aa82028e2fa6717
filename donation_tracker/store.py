"""SQLite-backed persistence layer for donors, donations, and the organization record."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Iterator


logger = logging.getLogger(__name__)

ORGANIZATION_ID = 1

_SEARCH_COLUMNS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "city",
    "state",
    "zip_code",
    "country",
)


class StoreError(Exception):
    """A database statement failed; the message is the engine's error text."""


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _iso_date(value: date | str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError as exc:
        raise ValueError(f"Invalid donation date: {value!r}") from exc


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def _like_pattern(search_term: str) -> str:
    escaped = (
        search_term.casefold()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


def _lastrowid(cursor: sqlite3.Cursor) -> int:
    row_id = cursor.lastrowid
    if row_id is None:
        raise StoreError("Insert did not return a row id.")
    return row_id


def amount_from_cents(cents: int) -> float:
    return cents / 100


def format_currency(cents: int) -> str:
    return f"${amount_from_cents(cents):,.2f}"


def donor_display_name(row: sqlite3.Row | dict[str, Any]) -> str:
    first_name = (row["first_name"] or "").strip()
    last_name = (row["last_name"] or "").strip()
    full_name = f"{first_name} {last_name}".strip()
    return full_name or "Unnamed donor"


class DonationStore:
    """Persistence operations for donors, donations, and organization details."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        # SQLite LOWER() folds ASCII only.
        connection.create_function("casefold", 1, _casefold, deterministic=True)
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        connection = self._connect()
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    def _execute(self, query: str, parameters: tuple[Any, ...] | list[Any] = ()) -> sqlite3.Cursor:
        try:
            with self._session() as connection:
                return connection.execute(query, parameters)
        except sqlite3.Error as exc:
            logger.error("Statement failed: %s", exc)
            raise StoreError(str(exc)) from exc

    def _fetchall(self, query: str, parameters: tuple[Any, ...] | list[Any] = ()) -> list[sqlite3.Row]:
        try:
            with self._session() as connection:
                return connection.execute(query, parameters).fetchall()
        except sqlite3.Error as exc:
            logger.error("Query failed: %s", exc)
            raise StoreError(str(exc)) from exc

    def _fetchone(self, query: str, parameters: tuple[Any, ...] | list[Any] = ()) -> sqlite3.Row | None:
        try:
            with self._session() as connection:
                return connection.execute(query, parameters).fetchone()
        except sqlite3.Error as exc:
            logger.error("Query failed: %s", exc)
            raise StoreError(str(exc)) from exc

    def init_db(self) -> None:
        try:
            with self._session() as connection:
                connection.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS donors (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        first_name TEXT,
                        last_name TEXT,
                        street TEXT,
                        city TEXT,
                        state TEXT,
                        zip_code TEXT,
                        country TEXT,
                        phone TEXT,
                        email TEXT,
                        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                    );

                    CREATE TABLE IF NOT EXISTS donations (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        donor_id INTEGER NOT NULL,
                        amount_cents INTEGER NOT NULL,
                        donation_date TEXT NOT NULL,
                        payment_method TEXT,
                        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (donor_id) REFERENCES donors(id) ON DELETE CASCADE
                    );

                    CREATE TABLE IF NOT EXISTS organization (
                        id INTEGER PRIMARY KEY CHECK (id = 1),
                        name TEXT,
                        address TEXT
                    );

                    CREATE INDEX IF NOT EXISTS idx_donations_donor ON donations (donor_id);
                    CREATE INDEX IF NOT EXISTS idx_donations_date ON donations (donation_date);
                    """
                )
        except (sqlite3.Error, OSError) as exc:
            logger.error("Could not initialize database at %s: %s", self.db_path, exc)
            raise StoreError(f"Cannot open database: {exc}") from exc

    def add_donor(
        self,
        first_name: str | None,
        last_name: str | None,
        street: str | None,
        city: str | None,
        state: str | None,
        zip_code: str | None,
        country: str | None,
        phone: str | None,
        email: str | None,
    ) -> int:
        cursor = self._execute(
            """
            INSERT INTO donors (
                first_name,
                last_name,
                street,
                city,
                state,
                zip_code,
                country,
                phone,
                email
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _clean(first_name),
                _clean(last_name),
                _clean(street),
                _clean(city),
                _clean(state),
                _clean(zip_code),
                _clean(country),
                _clean(phone),
                _clean(email),
            ),
        )
        donor_id = _lastrowid(cursor)
        logger.info("Added donor #%s", donor_id)
        return donor_id

    def update_donor(
        self,
        donor_id: int,
        first_name: str | None,
        last_name: str | None,
        street: str | None,
        city: str | None,
        state: str | None,
        zip_code: str | None,
        country: str | None,
        phone: str | None,
        email: str | None,
    ) -> bool:
        cursor = self._execute(
            """
            UPDATE donors
            SET
                first_name = ?,
                last_name = ?,
                street = ?,
                city = ?,
                state = ?,
                zip_code = ?,
                country = ?,
                phone = ?,
                email = ?
            WHERE id = ?
            """,
            (
                _clean(first_name),
                _clean(last_name),
                _clean(street),
                _clean(city),
                _clean(state),
                _clean(zip_code),
                _clean(country),
                _clean(phone),
                _clean(email),
                donor_id,
            ),
        )
        logger.info("Updated donor #%s (%s row)", donor_id, cursor.rowcount)
        return cursor.rowcount > 0

    def delete_donor(self, donor_id: int) -> bool:
        # Donations go with the donor through ON DELETE CASCADE.
        cursor = self._execute("DELETE FROM donors WHERE id = ?", (donor_id,))
        logger.info("Deleted donor #%s (%s row)", donor_id, cursor.rowcount)
        return cursor.rowcount > 0

    def get_donor(self, donor_id: int) -> sqlite3.Row | None:
        return self._fetchone("SELECT * FROM donors WHERE id = ?", (donor_id,))

    def list_donor_ids(self) -> list[int]:
        rows = self._fetchall("SELECT id FROM donors ORDER BY id ASC")
        return [int(row["id"]) for row in rows]

    def search_donors(
        self,
        search_term: str = "",
        include_all: bool = False,
    ) -> list[sqlite3.Row]:
        """Every donor when ``include_all`` or the term is empty, else substring matches.

        The term is matched literally and without trimming, so a whitespace-only
        term only finds values containing that whitespace.
        """

        base_select = """
            SELECT
                d.*,
                (
                    SELECT COALESCE(SUM(amount_cents), 0)
                    FROM donations dn
                    WHERE dn.donor_id = d.id
                ) AS total_given_cents,
                (
                    SELECT MAX(donation_date)
                    FROM donations dn
                    WHERE dn.donor_id = d.id
                ) AS last_donation_date
            FROM donors d
        """

        if include_all or not search_term:
            return self._fetchall(
                f"{base_select} ORDER BY d.first_name ASC, d.last_name ASC, d.id ASC"
            )

        where_sql = " OR ".join(
            f"casefold(COALESCE(d.{column}, '')) LIKE ? ESCAPE '\\'" for column in _SEARCH_COLUMNS
        )
        wildcard = _like_pattern(search_term)
        return self._fetchall(
            f"{base_select} WHERE {where_sql}",
            [wildcard] * len(_SEARCH_COLUMNS),
        )

    def add_donation(
        self,
        donor_id: int,
        amount_cents: int,
        donation_date: date | str,
        payment_method: str | None,
    ) -> int:
        cursor = self._execute(
            """
            INSERT INTO donations (donor_id, amount_cents, donation_date, payment_method)
            VALUES (?, ?, ?, ?)
            """,
            (donor_id, amount_cents, _iso_date(donation_date), _clean(payment_method)),
        )
        donation_id = _lastrowid(cursor)
        logger.info("Added donation #%s for donor #%s", donation_id, donor_id)
        return donation_id

    def update_donation(
        self,
        donation_id: int,
        donor_id: int,
        amount_cents: int,
        donation_date: date | str,
        payment_method: str | None,
    ) -> bool:
        cursor = self._execute(
            """
            UPDATE donations
            SET donor_id = ?, amount_cents = ?, donation_date = ?, payment_method = ?
            WHERE id = ?
            """,
            (
                donor_id,
                amount_cents,
                _iso_date(donation_date),
                _clean(payment_method),
                donation_id,
            ),
        )
        logger.info("Updated donation #%s (%s row)", donation_id, cursor.rowcount)
        return cursor.rowcount > 0

    def delete_donation(self, donation_id: int) -> bool:
        cursor = self._execute("DELETE FROM donations WHERE id = ?", (donation_id,))
        logger.info("Deleted donation #%s (%s row)", donation_id, cursor.rowcount)
        return cursor.rowcount > 0

    def get_donation(self, donation_id: int) -> sqlite3.Row | None:
        return self._fetchone("SELECT * FROM donations WHERE id = ?", (donation_id,))

    def list_donations(self, donor_id: int) -> list[sqlite3.Row]:
        # ISO dates are fixed width, so text order is date order.
        return self._fetchall(
            """
            SELECT *
            FROM donations
            WHERE donor_id = ?
            ORDER BY donation_date DESC, id DESC
            """,
            (donor_id,),
        )

    def get_organization(self) -> sqlite3.Row | None:
        return self._fetchone(
            "SELECT name, address FROM organization WHERE id = ?",
            (ORGANIZATION_ID,),
        )

    def set_organization(self, name: str, address: str) -> None:
        self._execute(
            "INSERT OR REPLACE INTO organization (id, name, address) VALUES (?, ?, ?)",
            (ORGANIZATION_ID, _clean(name), _clean(address)),
        )
        logger.info("Saved organization details")

    def donor_totals_for_year(self, year: int) -> list[sqlite3.Row]:
        """Return one row per donor with gifts dated in ``year``, summed."""

        return self._fetchall(
            """
            SELECT
                d.id,
                d.first_name,
                d.last_name,
                d.street,
                d.city,
                d.state,
                d.zip_code,
                d.country,
                SUM(dn.amount_cents) AS total_cents,
                COUNT(dn.id) AS donation_count
            FROM donors d
            JOIN donations dn ON dn.donor_id = d.id
            WHERE substr(dn.donation_date, 1, 4) = ?
            GROUP BY d.id
            ORDER BY d.last_name ASC, d.first_name ASC, d.id ASC
            """,
            (f"{year:04d}",),
        )

    def donation_years(self) -> list[int]:
        rows = self._fetchall(
            """
            SELECT DISTINCT substr(donation_date, 1, 4) AS year_key
            FROM donations
            ORDER BY year_key DESC
            """
        )
        return [int(row["year_key"]) for row in rows if str(row["year_key"]).isdigit()]
