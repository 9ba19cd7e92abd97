"""Per-connection scan session record."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from scanwise import settings
from scanwise.schemas.models import (
    Behavior,
    ClassificationResult,
    DetailResult,
    ItemIdentity,
    Mode,
)


class Phase(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    DETECTED = "detected"
    DETECTION_FAILED = "detection_failed"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    SUBMISSION_FAILED = "submission_failed"


@dataclass(frozen=True)
class RequestTag:
    """Mode/language a request was issued under; checked when it completes."""

    mode: Mode
    language: str


@dataclass
class Busy:
    detecting: bool = False
    generating: bool = False


@dataclass
class ScanSession:
    mode: Mode = Mode.GENERAL
    language: str = field(default_factory=lambda: settings.DEFAULT_LANGUAGE)
    behavior: Behavior = Behavior.AUTO
    camera_ready: bool = False
    phase: Phase = Phase.IDLE
    pending: Optional[ItemIdentity] = None
    last_classification: Optional[ClassificationResult] = None
    last_detail: Optional[DetailResult] = None
    detection_error: Optional[str] = None
    detail_error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    busy: Busy = field(default_factory=Busy)

    @property
    def tag(self) -> RequestTag:
        return RequestTag(self.mode, self.language)

    def reset_results(self) -> None:
        """Drop everything held from earlier requests (mode/language switch)."""
        self.pending = None
        self.last_classification = None
        self.last_detail = None
        self.detection_error = None
        self.detail_error = None
        self.field_errors = {}
        self.phase = Phase.IDLE

    def snapshot(self) -> dict:
        return {
            "mode": self.mode.value,
            "language": self.language,
            "behavior": self.behavior.value,
            "camera_ready": self.camera_ready,
            "phase": self.phase.value,
            "pending": (
                {"name": self.pending.name, "clues": self.pending.clues}
                if self.pending else None
            ),
            "last_detail": self.last_detail.model_dump() if self.last_detail else None,
            "detection_error": self.detection_error,
            "detail_error": self.detail_error,
            "field_errors": dict(self.field_errors),
            "busy": {"detecting": self.busy.detecting, "generating": self.busy.generating},
        }
