"""Booking schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, Field

NOTES_MAX_LENGTH = 500
REJECTION_REASON_MIN_LENGTH = 10
REJECTION_REASON_MAX_LENGTH = 500


class BookingStatus(str, Enum):
    """Booking status enumeration."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BookingAction(str, Enum):
    """Lifecycle actions that move a booking out of its current status."""

    CONFIRM = "confirm"
    REJECT = "reject"
    COMPLETE = "complete"
    CANCEL = "cancel"


class BookingEvent(str, Enum):
    """Events announced to the notification collaborator."""

    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ActorRole(str, Enum):
    """Kind of identity resolved from a caller token."""

    PATIENT = "patient"
    PROVIDER = "provider"


class Identity(BaseModel):
    """Caller identity as resolved by the identity collaborator."""

    actor_id: UUID
    role: ActorRole

    model_config = {"frozen": True}

    @property
    def is_patient(self) -> bool:
        return self.role == ActorRole.PATIENT

    @property
    def is_provider(self) -> bool:
        return self.role == ActorRole.PROVIDER


class BookingCreate(BaseModel):
    """Schema for requesting a new booking."""

    provider_id: UUID
    start_time: AwareDatetime
    end_time: AwareDatetime
    patient_notes: str | None = Field(None, max_length=NOTES_MAX_LENGTH)


class RejectPayload(BaseModel):
    """Schema for rejecting a pending booking."""

    rejection_reason: str


class TransitionRequest(BaseModel):
    """Schema for applying a lifecycle action to a booking."""

    action: BookingAction
    reason: str | None = None


class Booking(BaseModel):
    """Booking record."""

    id: UUID
    patient_id: UUID
    provider_id: UUID
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    patient_notes: str | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingListResponse(BaseModel):
    """Schema for paginated booking list response."""

    total: int
    page: int
    page_size: int
    items: list[Booking]


class BookingFilters(BaseModel):
    """Schema for booking filtering."""

    status: BookingStatus | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
