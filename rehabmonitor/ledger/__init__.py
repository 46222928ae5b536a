"""Ledger access package.

The ledger is an external key-value service.  This package defines the
interface the core consumes (:class:`LedgerGateway`) together with two
implementations: :class:`MemoryGateway` for tests and
:class:`LedgerDatabase`, a SQLite stand-in built on :mod:`sqlalchemy`.
"""

from .database import LedgerDatabase
from .gateway import LedgerGateway, MemoryGateway, is_user_rejection, write
