"""
records.index
~~~~~~~~~~~~~

Management of the record index.

The ledger cannot list keys, so one well-known key holds the ordered list of
every record identifier and is the only way to discover records.  The
index only grows: new identifiers are appended by a read, append, write
cycle and nothing is ever removed.

The cycle is not atomic.  Two clients appending at the same time can each
read the same list, and the second write then drops the first client's
identifier.  The index stays structurally valid in that case; only the
append is lost.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..config import settings
from ..errors import DecodeError
from ..ledger.gateway import LedgerGateway, write
from . import codec
from .model import RehabRecord

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_identifier(now: Optional[float] = None) -> str:
    """
    Return a fresh record identifier.

    The identifier is the current time in milliseconds, a dash and
    :data:`settings.ID_SUFFIX_LENGTH` random base‑36 characters.  It is
    unique enough within one session; nothing prevents another client from
    producing the same value.
    """
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(settings.ID_SUFFIX_LENGTH))
    return f"{millis}-{suffix}"


@dataclass(frozen=True)
class IndexListing:
    """Identifiers read from the index, plus the decode error if it was corrupt."""

    identifiers: Tuple[str, ...]
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RecordIndex:
    """
    Read and extend the identifier index stored on a ledger gateway.

    Parameters
    ----------
    gateway : LedgerGateway
        Backend holding the index and the records.
    index_key : str
        Key of the index.  Defaults to :data:`settings.INDEX_KEY`.
    record_prefix : str
        Prefix of every record key.  Defaults to
        :data:`settings.RECORD_KEY_PREFIX`.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        index_key: Optional[str] = None,
        record_prefix: Optional[str] = None,
    ) -> None:
        self.gateway = gateway
        self.index_key = index_key or settings.INDEX_KEY
        self.record_prefix = record_prefix or settings.RECORD_KEY_PREFIX

    def record_key(self, record_id: str) -> str:
        return self.record_prefix + record_id

    # ------------------------------------------------------------------ #
    # Index
    # ------------------------------------------------------------------ #

    async def list_identifiers(self) -> IndexListing:
        """
        Read the index.

        A missing or empty index gives an empty listing.  A corrupt index
        also gives an empty listing, with the :class:`DecodeError` attached
        so the caller can report it and carry on without records.  Errors
        raised by the gateway itself propagate.
        """
        data = await self.gateway.get_data(self.index_key)
        try:
            return IndexListing(tuple(codec.decode_index(data, self.index_key)))
        except DecodeError as exc:
            return IndexListing((), exc)

    async def append_identifier(self, record_id: str, identity: str) -> List[str]:
        """
        Append ``record_id`` to the index and write it back.

        The index is read, decoded, extended and written in that order with
        no retry.  A corrupt index raises :class:`DecodeError` and is left
        as it is.  Write failures surface as
        :class:`~rehabmonitor.errors.AuthorizationDeclined` or
        :class:`~rehabmonitor.errors.WriteFailure`.

        Returns the identifiers as written.
        """
        data = await self.gateway.get_data(self.index_key)
        identifiers = codec.decode_index(data, self.index_key)
        identifiers.append(record_id)
        await write(self.gateway, self.index_key, codec.encode_index(identifiers), identity)
        logger.info("appended %s to %s (%d ids)", record_id, self.index_key, len(identifiers))
        return identifiers

    # ------------------------------------------------------------------ #
    # Records
    # ------------------------------------------------------------------ #

    async def put_record(self, record: RehabRecord, identity: str) -> None:
        """Write ``record`` under its record key.  The index is not touched."""
        await write(self.gateway, self.record_key(record.id), codec.encode(record), identity)

    async def get_record(self, record_id: str) -> Optional[RehabRecord]:
        """
        Read and decode one record.

        Returns ``None`` when the key is absent.  Raises :class:`DecodeError`
        for a payload that is not a valid envelope.
        """
        key = self.record_key(record_id)
        data = await self.gateway.get_data(key)
        return codec.decode(data, record_id, key)

    async def add_record(self, record: RehabRecord, identity: str) -> None:
        """Write ``record`` and then append its id to the index."""
        await self.put_record(record, identity)
        await self.append_identifier(record.id, identity)

    async def materialize(self) -> Tuple[List[RehabRecord], Optional[DecodeError]]:
        """
        Rebuild the record list from the ledger.

        Records whose key is absent, unreadable or undecodable are logged and
        skipped.  An identifier listed twice resolves to the same record
        value.  Records come back in index order; the second element is the
        index decode error, if any.
        """
        listing = await self.list_identifiers()
        if listing.error is not None:
            logger.error("Error parsing rehab keys: %s", listing.error)

        records: Dict[str, RehabRecord] = {}
        for record_id in listing.identifiers:
            try:
                record = await self.get_record(record_id)
            except DecodeError as exc:
                logger.error("Error parsing rehab data for %s: %s", record_id, exc)
                continue
            except Exception:
                logger.exception("Error loading rehab data %s", record_id)
                continue
            if record is None:
                logger.warning("record %s is listed in the index but absent", record_id)
                continue
            records[record_id] = record

        return list(records.values()), listing.error
