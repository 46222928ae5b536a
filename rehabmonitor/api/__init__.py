"""
API package.

Defines the public interface the display layer drives: refreshing the
record snapshot, submitting new sessions and probing the ledger service.
"""

from .service import NoticeStatus, RehabService, StatusNotice
