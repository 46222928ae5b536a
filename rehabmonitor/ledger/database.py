"""
ledger.database
~~~~~~~~~~~~~~~

A SQLite-backed stand-in for the ledger contract.  Each key is one row; the
value is stored as a binary blob and, when a master key is supplied, the
blob is sealed with AES‑GCM from :mod:`rehabmonitor.security.crypto`.

The design intentionally keeps the schema lightweight: the ledger only
offers single-key get/set, so no listing or range query is exposed here
either.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import settings
from ..security.crypto import seal, unseal

logger = logging.getLogger(__name__)

Base = declarative_base()


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    key = sa.Column(sa.String(255), primary_key=True)
    value = sa.Column(sa.LargeBinary, nullable=False)
    writer = sa.Column(sa.String(255), nullable=False)
    updated_at = sa.Column(sa.Integer, nullable=False)


class LedgerDatabase:
    """
    Ledger gateway persisting key-value pairs with SQLAlchemy.

    Parameters
    ----------
    url : str
        SQLAlchemy database URL.  Defaults to :data:`settings.DATABASE_URL`.
    key : bytes, optional
        AES‑GCM key used to seal values at rest.  Values are stored in the
        clear when omitted.
    """

    def __init__(self, url: Optional[str] = None, key: Optional[bytes] = None) -> None:
        self.url = url or settings.DATABASE_URL
        self._key = key
        self._ensure_directory()
        # calls arrive from asyncio worker threads
        options = {}
        if self.url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
        if self.url == "sqlite:///:memory:":
            options["poolclass"] = StaticPool
        self.engine = sa.create_engine(self.url, **options)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _ensure_directory(self) -> None:
        prefix = "sqlite:///"
        if self.url.startswith(prefix) and self.url != "sqlite:///:memory:":
            directory = os.path.dirname(self.url[len(prefix):])
            if directory:
                os.makedirs(directory, exist_ok=True)

    # ------------------------------------------------------------------ #
    # Blocking operations
    # ------------------------------------------------------------------ #

    def _probe(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(sa.text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("ledger database probe failed")
            return False
        return True

    def _get(self, key: str) -> bytes:
        with self._sessions() as session:
            entry = session.get(LedgerEntry, key)
            if entry is None:
                return b""
            value = bytes(entry.value)
        return unseal(value, self._key) if self._key else value

    def _set(self, key: str, value: bytes, identity: str) -> None:
        stored = seal(value, self._key) if self._key else bytes(value)
        with self._sessions() as session:
            with session.begin():
                entry = session.get(LedgerEntry, key)
                if entry is None:
                    session.add(
                        LedgerEntry(key=key, value=stored, writer=identity, updated_at=int(time.time()))
                    )
                else:
                    entry.value = stored
                    entry.writer = identity
                    entry.updated_at = int(time.time())

    # ------------------------------------------------------------------ #
    # Gateway interface
    # ------------------------------------------------------------------ #

    async def is_available(self) -> bool:
        return await asyncio.to_thread(self._probe)

    async def get_data(self, key: str) -> bytes:
        return await asyncio.to_thread(self._get, key)

    async def set_data(self, key: str, value: bytes, identity: str) -> None:
        await asyncio.to_thread(self._set, key, value, identity)

    def close(self) -> None:
        self.engine.dispose()
