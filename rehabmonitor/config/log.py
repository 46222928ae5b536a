"""Logging setup for applications embedding the RehabMonitor core."""

from __future__ import annotations

import logging

from . import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool | None = None) -> None:
    """
    Install a root handler for the ``rehabmonitor`` loggers.

    Parameters
    ----------
    debug : bool | None
        Log at ``DEBUG`` when true.  Defaults to :data:`settings.DEBUG_MODE`.
    """
    if debug is None:
        debug = settings.DEBUG_MODE
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
    logging.getLogger("rehabmonitor").setLevel(logging.DEBUG if debug else logging.INFO)
