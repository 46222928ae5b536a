"""RehabMonitor: private rehabilitation session records on a key-value ledger.

Sessions are encrypted, stored one per ledger key and discovered through a
single identifier index.  See :class:`rehabmonitor.api.RehabService` for
the entry point.
"""

__version__ = "0.1.0"

from .api import NoticeStatus, RehabService, StatusNotice
from .records import Intensity, RecordIndex, RehabRecord, SessionDraft
