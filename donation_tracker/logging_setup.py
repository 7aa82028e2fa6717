"""Console logging for the donation tracker."""

from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process.

    Streamlit re-executes the app script on every interaction; ``basicConfig``
    is a no-op once the root logger has handlers, so repeated calls are safe.
    """

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    logging.getLogger(__name__).debug("Logging initialized with level %s", level)
