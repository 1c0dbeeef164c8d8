"""Database models for unit enrollments.

One row per (student, unit). The row is created once by the enrollment
cascade and never deleted; ``progress`` and ``completed_at`` are a cache
refreshed after lesson completions and may lag behind live progress.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from learnhub.catalog.models import UnitKind, UnitRef
from learnhub.utils.timeutils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Enrollments by student; the natural key is the whole primary key
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    student_id UUID,
    unit_kind TEXT,
    unit_id UUID,
    enrolled_at TIMESTAMP,
    progress INT,
    completed_at TIMESTAMP,
    certificate_id TEXT,
    PRIMARY KEY (student_id, unit_kind, unit_id)
) WITH CLUSTERING ORDER BY (unit_kind ASC, unit_id ASC)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class EnrollmentRecord:
    """Enrollment of a student in a course, certification or learning path.

    Attributes:
        student_id: Student UUID
        unit_kind: Enrolled unit variant
        unit_id: Enrolled unit UUID
        enrolled_at: Creation timestamp, never changes
        progress: Cached completion percent (0-100)
        completed_at: First time progress reached 100
        certificate_id: Certificate minted for a completed certification
    """

    def __init__(
        self,
        student_id: UUID,
        unit_kind: UnitKind | str,
        unit_id: UUID,
        enrolled_at: datetime | None = None,
        progress: int = 0,
        completed_at: datetime | None = None,
        certificate_id: str | None = None,
    ):
        self.student_id = student_id
        self.unit_kind = UnitKind(unit_kind)
        self.unit_id = unit_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or utc_now()
        self.progress = progress
        self.completed_at = ensure_utc_aware(completed_at)
        self.certificate_id = certificate_id

    @property
    def ref(self) -> UnitRef:
        return UnitRef(self.unit_kind, self.unit_id)

    @property
    def is_completed(self) -> bool:
        """Check if the unit has been completed at least once."""
        return self.completed_at is not None

    @classmethod
    def from_row(cls, row: Any) -> "EnrollmentRecord":
        """Create EnrollmentRecord instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            unit_kind=row.unit_kind,
            unit_id=row.unit_id,
            enrolled_at=row.enrolled_at,
            progress=row.progress or 0,
            completed_at=row.completed_at,
            certificate_id=row.certificate_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "unit_kind": self.unit_kind.value,
            "unit_id": self.unit_id,
            "enrolled_at": self.enrolled_at,
            "progress": self.progress,
            "completed_at": self.completed_at,
            "certificate_id": self.certificate_id,
        }

    def __repr__(self) -> str:
        return (
            f"<EnrollmentRecord student={self.student_id} "
            f"{self.unit_kind.value}={self.unit_id} {self.progress}%>"
        )
