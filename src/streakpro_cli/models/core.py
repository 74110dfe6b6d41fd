"""Activity, history and verification data models."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Activity(BaseModel):
    """Activity model: a streak the user works on in timed sessions.

    Attributes:
        id: Unique integer identifier
        title: Activity title
        description: Optional free-form description
        total_time: Planned focus duration per session, in minutes (user input)
        break_minutes: Length of one break, in minutes
        break_count: Remaining break budget
        break_time_seconds: Cumulative recorded break time across sessions
        streak_count: Number of reconciled sessions (derived, never stored)
        user_id: Owning principal
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: int
    title: str
    description: str = ""
    total_time: int
    break_minutes: int = 5
    break_count: int = 1
    break_time_seconds: int = 0
    streak_count: int = 0
    user_id: str
    created_at: datetime
    updated_at: datetime


class ActivityCreate(BaseModel):
    """Model for creating a new activity.

    Attributes:
        title: Activity title (required)
        description: Optional description
        total_time: Planned focus minutes per session (required, > 0)
        break_minutes: Length of one break in minutes
        break_count: Number of breaks allowed per session
    """

    title: str = Field(min_length=1)
    description: str = ""
    total_time: int = Field(gt=0)
    break_minutes: int = Field(default=5, ge=0)
    break_count: int = Field(default=1, ge=0)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()


class ActivityUpdate(BaseModel):
    """Model for updating an existing activity.

    All fields are optional - only provided fields will be updated.
    """

    title: str | None = None
    description: str | None = None
    total_time: int | None = Field(default=None, gt=0)
    break_minutes: int | None = Field(default=None, ge=0)
    break_count: int | None = Field(default=None, ge=0)


class HistoryRecord(BaseModel):
    """Durable record of one completed, terminated or still-open session.

    Attributes:
        id: Unique integer identifier
        activity_id: Owning activity
        user_id: Principal that ran the session
        title: Session title (activity title at start)
        description: Session description
        started_at: When the session started
        ended_at: When it ended, None while still open
        focus_duration_seconds: Accumulated focus time
        total_break_seconds: Sum of completed break durations
        duration_minutes: Rounded (focus + break) minutes
        break_log: Break records in order
        photo_url: Photo reference attached by verification
        verified: Verification verdict
        verification_note: Classifier reasoning
        session_key: Client idempotency key
        reconciled: True once written by record_session
        created_at: Row creation timestamp
    """

    id: int
    activity_id: int
    user_id: str
    title: str = ""
    description: str = ""
    started_at: datetime
    ended_at: datetime | None = None
    focus_duration_seconds: int = 0
    total_break_seconds: int = 0
    duration_minutes: int = 0
    break_log: list[dict[str, Any]] = Field(default_factory=list)
    photo_url: str | None = None
    verified: bool = False
    verification_note: str | None = None
    session_key: str | None = None
    reconciled: bool = False
    created_at: datetime


class VerificationResult(BaseModel):
    """Verdict returned by the verification classifier."""

    verified: bool = False
    confidence: float | None = None
    reasoning: str | None = None
    authentic: bool | None = None
    matches_description: bool | None = None

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float | None) -> float | None:
        if v is None:
            return v
        return max(0.0, min(1.0, float(v)))


class VerificationRecord(BaseModel):
    """Stored verification attempt linked to a history record."""

    id: int
    activity_id: int
    history_id: int | None = None
    description: str | None = None
    image_ref: str | None = None
    verified: bool = False
    confidence: float | None = None
    result_text: str | None = None
    created_at: datetime

    def to_result(self) -> VerificationResult:
        """Rebuild the classifier verdict from the stored raw text."""
        if self.result_text:
            try:
                return VerificationResult.model_validate(json.loads(self.result_text))
            except ValueError:
                pass
        return VerificationResult(verified=self.verified, confidence=self.confidence)


class HistoryCreate(BaseModel):
    """Model for writing a history record.

    Attributes:
        activity_id: Owning activity
        user_id: Principal that ran the session
        title: Session title
        description: Session description
        started_at: Session start
        ended_at: Session end, None for an open session
        focus_duration_seconds: Accumulated focus time
        total_break_seconds: Completed break seconds
        duration_minutes: Rounded total minutes
        break_log: Serialisable break records
        session_key: Client idempotency key
        reconciled: Whether this write is a full reconciliation
    """

    activity_id: int
    user_id: str
    title: str = ""
    description: str = ""
    started_at: datetime
    ended_at: datetime | None = None
    focus_duration_seconds: int = Field(default=0, ge=0)
    total_break_seconds: int = Field(default=0, ge=0)
    duration_minutes: int = Field(default=0, ge=0)
    break_log: list[dict[str, Any]] = Field(default_factory=list)
    session_key: str | None = None
    reconciled: bool = False
