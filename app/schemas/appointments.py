"""Appointment schemas for Firestore seed data."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


class AppointmentCreate(BaseModel):
    """Appointment document written to the ``appointments`` collection."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", description="Firebase uid of the patient")
    doctor: str
    specialty: str
    date: str = Field(..., description="Appointment date, e.g. 2024-01-15")
    time: str = Field(..., description="Appointment time, e.g. 10:00 AM")
    type: str
    reason: str
    phone: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: str | None = None

    def to_document(self) -> dict:
        """Return the Firestore document fields, without timestamps."""
        return self.model_dump(by_alias=True, mode="json")


class SeedFailure(BaseModel):
    """A sample record that could not be inserted."""

    index: int
    doctor: str
    error: str


class SeedResult(BaseModel):
    """Outcome of a seeding batch."""

    created_ids: list[str] = Field(default_factory=list)
    failures: list[SeedFailure] = Field(default_factory=list)

    @property
    def created_count(self) -> int:
        """Number of inserted records."""
        return len(self.created_ids)

    @property
    def failure_count(self) -> int:
        """Number of records that failed."""
        return len(self.failures)
