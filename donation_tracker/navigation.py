"""Cursor over the store's donor ids, driving the donor browser."""

from __future__ import annotations

import logging
import sqlite3

from .store import DonationStore, StoreError


logger = logging.getLogger(__name__)


class DonorNavigator:
    """Tracks which donor is loaded and where it sits in id order.

    ``current_index`` and ``current_donor_id`` are ``None`` when nothing is
    loaded. Store failures never escape; they are kept in ``error`` until the
    UI pops them.
    """

    def __init__(self, store: DonationStore) -> None:
        self.store = store
        self.donor_ids: list[int] = []
        self.current_index: int | None = None
        self.current_donor_id: int | None = None
        self.donor: sqlite3.Row | None = None
        self.donations: list[sqlite3.Row] = []
        self.error: str | None = None

    def pop_error(self) -> str | None:
        message, self.error = self.error, None
        return message

    def clear(self) -> None:
        self.current_index = None
        self.current_donor_id = None
        self.donor = None
        self.donations = []

    def _position(self) -> int:
        return -1 if self.current_index is None else self.current_index

    def refresh(self) -> bool:
        """Re-read donor ids and re-find the loaded donor in them."""

        try:
            self.donor_ids = self.store.list_donor_ids()
        except StoreError as exc:
            self.error = f"Failed to load donor list: {exc}"
            logger.warning("%s", self.error)
            return False

        if self.current_donor_id is None:
            self.current_index = None
        elif self.current_donor_id in self.donor_ids:
            self.current_index = self.donor_ids.index(self.current_donor_id)
        else:
            self.clear()
        return True

    def load_donor(self, donor_id: int) -> bool:
        try:
            donor = self.store.get_donor(donor_id)
            donations = self.store.list_donations(donor_id) if donor is not None else []
        except StoreError as exc:
            donor = None
            donations = []
            self.error = f"Failed to load donor details: {exc}"
        else:
            if donor is None:
                self.error = f"Donor #{donor_id} was not found."

        if donor is None:
            logger.warning("Could not load donor #%s", donor_id)
            self.clear()
            return False

        self.donor = donor
        self.donations = donations
        self.current_donor_id = donor_id
        return True

    def _load_index(self, index: int) -> bool:
        self.current_index = index
        return self.load_donor(self.donor_ids[index])

    def load_first(self) -> bool:
        if not self.refresh():
            return False
        if not self.donor_ids:
            self.clear()
            return False
        return self._load_index(0)

    def load_last(self) -> bool:
        if not self.refresh():
            return False
        if not self.donor_ids:
            self.clear()
            return False
        return self._load_index(len(self.donor_ids) - 1)

    def load_previous(self) -> bool:
        if not self.can_move_previous:
            return False
        return self._load_index(self._position() - 1)

    def load_next(self) -> bool:
        if not self.can_move_next:
            return False
        return self._load_index(self._position() + 1)

    def select(self, donor_id: int) -> bool:
        """Load a donor picked outside the browser, e.g. from search results."""

        if donor_id not in self.donor_ids:
            self.refresh()
        if donor_id not in self.donor_ids:
            logger.debug("Donor #%s is not in the navigation list", donor_id)
            return False
        return self._load_index(self.donor_ids.index(donor_id))

    def reload(self) -> bool:
        if self.current_donor_id is None:
            return False
        self.refresh()
        if self.current_index is None:
            return False
        return self._load_index(self.current_index)

    def after_donor_added(self, donor_id: int) -> bool:
        self.refresh()
        return self.select(donor_id)

    def after_donor_changed(self) -> bool:
        return self.reload()

    def after_donor_deleted(self) -> bool:
        return self.load_first()

    @property
    def can_move_first(self) -> bool:
        return bool(self.donor_ids) and self._position() != 0

    @property
    def can_move_previous(self) -> bool:
        return 0 <= self._position() - 1 < len(self.donor_ids)

    @property
    def can_move_next(self) -> bool:
        return 0 <= self._position() + 1 < len(self.donor_ids)

    @property
    def can_move_last(self) -> bool:
        return bool(self.donor_ids) and self._position() != len(self.donor_ids) - 1
