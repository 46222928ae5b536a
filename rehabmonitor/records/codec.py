"""
records.codec
~~~~~~~~~~~~~

Serialization of one :class:`RehabRecord` into the envelope stored under its
record key, and of the identifier index stored under the index key.

Both formats are UTF‑8 JSON.  Envelopes use camelCase field names so that
records written by the browser client and by this package are
interchangeable.  Every byte string read from the ledger passes through
:func:`decode` or :func:`decode_index` before it is used; the shape checks
are the :class:`RecordEnvelope` schema, and any :class:`ValidationError`
becomes a :class:`DecodeError`.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from ..config import settings
from ..errors import DecodeError
from .model import Intensity, RehabRecord


# --------------------------------------------------------------------------- #
# Schemas
# --------------------------------------------------------------------------- #

class RecordEnvelope(BaseModel):
    """Wire shape of one record.  Unknown keys are ignored."""

    model_config = ConfigDict(strict=True, populate_by_name=True, frozen=True)

    id: Optional[str] = None
    exercise_type: str = Field(alias="exerciseType", min_length=1)
    duration: int = Field(ge=0)
    intensity: Intensity
    encrypted_metrics: str = Field(alias="encryptedMetrics")
    timestamp: int
    # the browser client writes null as often as it omits these
    therapist_notes: Optional[str] = Field(None, alias="therapistNotes")
    progress_score: Optional[int] = Field(
        None, alias="progressScore", ge=0, le=settings.MAX_PROGRESS_SCORE
    )

    @classmethod
    def from_record(cls, record: RehabRecord) -> "RecordEnvelope":
        return cls(
            id=record.id,
            exercise_type=record.exercise_type,
            duration=record.duration,
            intensity=Intensity(record.intensity),
            encrypted_metrics=record.encrypted_metrics,
            timestamp=record.timestamp,
            therapist_notes=record.therapist_notes,
            progress_score=record.progress_score,
        )

    def to_record(self, record_id: str) -> RehabRecord:
        return RehabRecord(
            id=record_id,
            exercise_type=self.exercise_type,
            duration=self.duration,
            intensity=self.intensity,
            encrypted_metrics=self.encrypted_metrics,
            timestamp=self.timestamp,
            therapist_notes=self.therapist_notes or "",
            progress_score=self.progress_score or 0,
        )


_INDEX = TypeAdapter(List[StrictStr])


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
        for err in exc.errors()
    )


# --------------------------------------------------------------------------- #
# Record envelope
# --------------------------------------------------------------------------- #

def encode(record: RehabRecord) -> bytes:
    """
    Serialize ``record`` deterministically.

    Raises :class:`ValueError` if a required field is empty.
    """
    if not record.exercise_type or not record.id:
        raise ValueError("record is missing a required field")
    return RecordEnvelope.from_record(record).model_dump_json(by_alias=True).encode("utf-8")


def decode(
    data: bytes, record_id: Optional[str] = None, key: Optional[str] = None
) -> Optional[RehabRecord]:
    """
    Parse an envelope read from the ledger.

    Parameters
    ----------
    data : bytes
        Raw value of a record key.  Zero-length means the key is absent.
    record_id : str, optional
        Identifier the payload was read under.  When given it takes
        precedence over any ``id`` embedded in the envelope; envelopes
        written without an ``id`` require it.
    key : str, optional
        Ledger key the payload came from, reported in errors.  Defaults to
        the record key built from :data:`settings.RECORD_KEY_PREFIX`.

    Returns
    -------
    RehabRecord | None
        ``None`` for an absent record.

    Raises
    ------
    DecodeError
        If the bytes are not a JSON object, or a required field is missing
        or invalid.
    """
    if not data:
        return None
    if key is None and record_id:
        key = settings.RECORD_KEY_PREFIX + record_id
    try:
        envelope = RecordEnvelope.model_validate_json(bytes(data))
    except ValidationError as exc:
        raise DecodeError(_describe(exc), key) from exc
    except RecursionError as exc:
        raise DecodeError("payload nests too deeply", key) from exc

    rid = record_id or envelope.id
    if not rid:
        raise DecodeError("envelope has no record id", key)
    return envelope.to_record(rid)


# --------------------------------------------------------------------------- #
# Identifier index
# --------------------------------------------------------------------------- #

def encode_index(identifiers: Sequence[str]) -> bytes:
    return _INDEX.dump_json(list(identifiers))


def decode_index(data: bytes, key: str = settings.INDEX_KEY) -> List[str]:
    """
    Parse the index payload.

    An empty payload is an empty index.  Anything other than a JSON array of
    strings raises :class:`DecodeError`.
    """
    if not data:
        return []
    try:
        return _INDEX.validate_json(bytes(data))
    except ValidationError as exc:
        raise DecodeError(_describe(exc), key) from exc
    except RecursionError as exc:
        raise DecodeError("index nests too deeply", key) from exc
