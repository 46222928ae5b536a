"""
api.service
~~~~~~~~~~~

Operation boundary between the display layer and the record core.

:class:`RehabService` runs the refresh, submit and availability-check
operations.  Each one catches every ledger and decode failure and returns a
:class:`StatusNotice` for the user instead of raising; the worst outcome of
any operation is an empty or stale view.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..config import settings
from ..errors import (
    AuthorizationDeclined,
    BackendUnavailable,
    DecodeError,
    InvalidDraft,
    WriteFailure,
)
from ..ledger.gateway import LedgerGateway
from ..records.index import RecordIndex, new_identifier
from ..records.model import Intensity, RehabRecord, SessionDraft
from ..security.crypto import MetricsEncryptor, ProgressScorer, SimulatedFHE, simulated_progress_score
from ..views.snapshot import RecordSnapshot

logger = logging.getLogger(__name__)


class NoticeStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusNotice:
    """A transient message for the user; dismissed after ``dismiss_after`` seconds."""

    status: NoticeStatus
    message: str
    dismiss_after: float = 0.0

    @classmethod
    def success(cls, message: str) -> "StatusNotice":
        return cls(NoticeStatus.SUCCESS, message, settings.SUCCESS_NOTICE_SECONDS)

    @classmethod
    def error(cls, message: str) -> "StatusNotice":
        return cls(NoticeStatus.ERROR, message, settings.ERROR_NOTICE_SECONDS)

    @classmethod
    def pending(cls, message: str) -> "StatusNotice":
        return cls(NoticeStatus.PENDING, message)

    @property
    def ok(self) -> bool:
        return self.status is not NoticeStatus.ERROR


class RehabService:
    """
    Refresh and submit rehabilitation sessions against a ledger gateway.

    Parameters
    ----------
    gateway : LedgerGateway
        Backend holding the index and records.
    index : RecordIndex, optional
        Index manager; built on ``gateway`` with default keys when omitted.
    encryptor : MetricsEncryptor, optional
        Produces ``encryptedMetrics``.  Defaults to :class:`SimulatedFHE`.
    scorer : callable, optional
        Returns the progress score of a new session.
    clock : callable, optional
        Returns the current time in seconds; used for timestamps and ids.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        index: Optional[RecordIndex] = None,
        encryptor: Optional[MetricsEncryptor] = None,
        scorer: Optional[ProgressScorer] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.gateway = gateway
        self.index = index or RecordIndex(gateway)
        self.encryptor = encryptor or SimulatedFHE()
        self.scorer = scorer or simulated_progress_score
        self.clock = clock or time.time
        self.snapshot = RecordSnapshot()
        self.last_notice: Optional[StatusNotice] = None
        self.refreshing = False

    def _notify(self, notice: StatusNotice) -> StatusNotice:
        self.last_notice = notice
        return notice

    def dismiss(self) -> None:
        self.last_notice = None

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    async def require_backend(self) -> None:
        """
        Run the capability probe.

        Raises :class:`BackendUnavailable` when the gateway reports itself
        unavailable or the probe call fails.
        """
        try:
            available = await self.gateway.is_available()
        except Exception as exc:
            logger.exception("availability probe failed")
            raise BackendUnavailable("Error checking availability") from exc
        if not available:
            logger.error("Contract is not available")
            raise BackendUnavailable("FHE service unavailable")

    async def check_availability(self) -> StatusNotice:
        try:
            await self.require_backend()
        except BackendUnavailable as exc:
            return self._notify(StatusNotice.error(str(exc)))
        return self._notify(StatusNotice.success("FHE service is available!"))

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    async def refresh(self) -> Optional[StatusNotice]:
        """
        Rebuild the snapshot from the ledger.

        Returns ``None`` on a clean refresh.  When the backend is unavailable
        or the index cannot be read, the previous snapshot is kept and an
        error notice is returned.  A corrupt index yields an empty snapshot
        and a notice; individual bad records are logged and skipped.
        """
        self.refreshing = True
        try:
            try:
                await self.require_backend()
            except BackendUnavailable as exc:
                return self._notify(StatusNotice.error(str(exc)))

            try:
                records, index_error = await self.index.materialize()
            except Exception as exc:
                logger.exception("Error loading rehab data")
                return self._notify(StatusNotice.error(f"Error loading rehab data: {exc}"))

            self.snapshot = RecordSnapshot.build(records, self.clock())
            logger.debug("refreshed %d records", len(self.snapshot))
            if index_error is not None:
                return self._notify(StatusNotice.error("Error parsing rehab keys"))
            return None
        finally:
            self.refreshing = False

    # ------------------------------------------------------------------ #
    # Submit
    # ------------------------------------------------------------------ #

    def build_record(self, draft: SessionDraft) -> RehabRecord:
        """Turn a validated draft into a new record with a fresh identifier."""
        now = self.clock()
        intensity = Intensity(draft.intensity)
        return RehabRecord(
            id=new_identifier(now),
            exercise_type=draft.exercise_type,
            duration=draft.duration,
            intensity=intensity,
            encrypted_metrics=self.encryptor.encrypt(draft.metrics, intensity.value, draft.duration),
            timestamp=int(now),
            therapist_notes="",
            progress_score=self.scorer(),
        )

    async def submit(self, draft: SessionDraft, identity: Optional[str]) -> StatusNotice:
        """
        Encrypt and store a new session, append it to the index and refresh.

        ``identity`` is the signing identity of the connected wallet; it is
        passed to every write.  Nothing is written when it is missing or the
        draft is incomplete.
        """
        if not identity:
            return self._notify(StatusNotice.error("Please connect wallet first"))
        try:
            draft.validate()
        except InvalidDraft as exc:
            return self._notify(StatusNotice.error(str(exc)))

        self._notify(StatusNotice.pending("Encrypting rehab metrics with FHE..."))
        try:
            record = self.build_record(draft)
            await self.index.add_record(record, identity)
        except AuthorizationDeclined:
            logger.info("submission declined by user")
            return self._notify(StatusNotice.error("Transaction declined by user"))
        except WriteFailure as exc:
            logger.error("submission failed writing %s: %s", exc.key, exc.reason)
            return self._notify(StatusNotice.error(f"Submission failed: {exc.reason}"))
        except DecodeError as exc:
            logger.error("submission aborted, index unreadable: %s", exc)
            return self._notify(StatusNotice.error(f"Submission failed: {exc}"))
        except Exception as exc:
            logger.exception("submission failed")
            return self._notify(StatusNotice.error(f"Submission failed: {str(exc) or 'Unknown error'}"))

        logger.info("submitted record %s", record.id)
        stale = await self.refresh()
        if stale is not None:
            logger.warning("record %s stored but refresh failed: %s", record.id, stale.message)
            return self._notify(
                StatusNotice.success(f"Encrypted rehab data submitted! View not refreshed: {stale.message}")
            )
        return self._notify(StatusNotice.success("Encrypted rehab data submitted!"))
