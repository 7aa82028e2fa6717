"""Donor records, donations, and year-end letters for a small nonprofit."""

from .config import AppConfig, letter_year_bounds
from .forms import (
    DonationForm,
    DonorForm,
    FormValidationError,
    OrganizationForm,
)
from .letters import LetterGenerator, LetterRun
from .navigation import DonorNavigator
from .store import (
    DonationStore,
    StoreError,
    donor_display_name,
    format_currency,
)

__all__ = [
    "AppConfig",
    "DonationForm",
    "DonationStore",
    "DonorForm",
    "DonorNavigator",
    "FormValidationError",
    "LetterGenerator",
    "LetterRun",
    "OrganizationForm",
    "StoreError",
    "donor_display_name",
    "format_currency",
    "letter_year_bounds",
]
