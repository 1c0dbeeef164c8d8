"""Pydantic schemas for enrollments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnhub.catalog.models import UnitKind

from .models import EnrollmentRecord


class EnrollRequest(BaseModel):
    """Request to enroll in a course, certification or learning path."""

    unit_kind: UnitKind = Field(..., description="course, certification or path")
    unit_id: UUID = Field(..., description="Unit UUID to enroll in")


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    model_config = ConfigDict(from_attributes=True)

    student_id: UUID
    unit_kind: UnitKind
    unit_id: UUID
    enrolled_at: datetime
    progress: int = Field(description="Cached 0-100 percentage, may lag")
    completed_at: datetime | None = None
    certificate_id: str | None = None

    @classmethod
    def from_entity(cls, entity: EnrollmentRecord) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(
            student_id=entity.student_id,
            unit_kind=entity.unit_kind,
            unit_id=entity.unit_id,
            enrolled_at=entity.enrolled_at,
            progress=entity.progress,
            completed_at=entity.completed_at,
            certificate_id=entity.certificate_id,
        )


class EnrollmentListResponse(BaseModel):
    """List of enrollments."""

    items: list[EnrollmentResponse]
    total: int
