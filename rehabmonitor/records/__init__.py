"""Record storage package.

This package maps rehabilitation sessions onto the ledger's key-value
store: :mod:`.codec` defines the JSON envelope of one record and of the
identifier index, and :class:`RecordIndex` keeps the index that is the only
way to discover which records exist.
"""

from .codec import decode, decode_index, encode, encode_index
from .index import IndexListing, RecordIndex, new_identifier
from .model import Intensity, RehabRecord, SessionDraft
