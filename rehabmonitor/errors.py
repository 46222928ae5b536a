"""
rehabmonitor.errors
~~~~~~~~~~~~~~~~~~~

Exception types shared by the ledger, record and service layers.

Low-level modules raise these; :class:`rehabmonitor.api.RehabService`
catches them at the refresh/submit boundary and turns them into status
notices.
"""

from __future__ import annotations


class RehabMonitorError(Exception):
    """Base class for every error raised by the package."""


class BackendUnavailable(RehabMonitorError):
    """The ledger capability probe returned false or could not be run."""


class DecodeError(RehabMonitorError):
    """A payload read from the ledger is not a valid index or envelope."""

    def __init__(self, reason: str, key: str | None = None) -> None:
        self.reason = reason
        self.key = key
        super().__init__(f"{key}: {reason}" if key else reason)


class AuthorizationDeclined(RehabMonitorError):
    """The user refused to sign a ledger write."""


class WriteFailure(RehabMonitorError):
    """A ledger write failed for a reason other than user refusal."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(reason)


class InvalidDraft(RehabMonitorError):
    """A session draft is missing required input."""


class MissingIdentity(RehabMonitorError):
    """A write was requested without a signing identity."""
