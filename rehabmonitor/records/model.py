"""Record types for rehabilitation sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..config import settings
from ..errors import InvalidDraft


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RehabRecord:
    """One rehabilitation session as stored on the ledger."""

    id: str
    exercise_type: str
    duration: int  # minutes
    intensity: Intensity
    encrypted_metrics: str  # opaque ciphertext
    timestamp: int  # seconds since epoch
    therapist_notes: str = ""
    progress_score: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("record id must not be empty")
        if not self.exercise_type:
            raise ValueError("exercise_type must not be empty")
        if self.duration < 0:
            raise ValueError("duration must be non-negative")
        if not 0 <= self.progress_score <= settings.MAX_PROGRESS_SCORE:
            raise ValueError(f"progress_score must be within 0..{settings.MAX_PROGRESS_SCORE}")
        if not isinstance(self.intensity, Intensity):
            object.__setattr__(self, "intensity", Intensity(self.intensity))


@dataclass(frozen=True)
class SessionDraft:
    """User input for a session that has not been submitted yet."""

    exercise_type: str = ""
    duration: int = 0
    intensity: Intensity = Intensity.LOW
    metrics: str = ""

    def validate(self) -> None:
        """Raise :class:`InvalidDraft` unless the draft can be submitted."""
        if not isinstance(self.exercise_type, str) or not isinstance(self.metrics, str):
            raise InvalidDraft("Please fill required fields")
        if not self.exercise_type.strip() or not self.metrics:
            raise InvalidDraft("Please fill required fields")
        if isinstance(self.duration, bool) or not isinstance(self.duration, int) or self.duration < 0:
            raise InvalidDraft("duration must be a non-negative number of minutes")
        try:
            Intensity(self.intensity)
        except (TypeError, ValueError) as exc:
            raise InvalidDraft(f"unknown intensity {self.intensity!r}") from exc
