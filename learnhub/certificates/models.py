"""Database models for certification certificates.

One certificate per (student, certification). The id is minted on first
issue and reused on every later request.
"""

import random
import time
from datetime import datetime
from typing import Any
from uuid import UUID

from learnhub.utils.timeutils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CERTIFICATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates (
    student_id UUID,
    certification_id UUID,
    id TEXT,
    issue_date TIMESTAMP,
    PRIMARY KEY ((student_id, certification_id))
)
"""

CERTIFICATES_TABLES_CQL = [
    CERTIFICATES_TABLE_CQL,
]


def mint_certificate_id() -> str:
    """New certificate id: ``CERT-<epoch millis>-<0..999>``."""
    return f"CERT-{int(time.time() * 1000)}-{random.randint(0, 999)}"  # noqa: S311


# ==============================================================================
# Entity Classes
# ==============================================================================


class Certificate:
    """Certificate entity.

    Attributes:
        id: Human-readable certificate id
        student_id: Student UUID
        certification_id: Certification UUID
        issue_date: First issue timestamp
    """

    def __init__(
        self,
        id: str,
        student_id: UUID,
        certification_id: UUID,
        issue_date: datetime | None = None,
    ):
        self.id = id
        self.student_id = student_id
        self.certification_id = certification_id
        self.issue_date = ensure_utc_aware(issue_date) or utc_now()

    @classmethod
    def from_row(cls, row: Any) -> "Certificate":
        """Create Certificate instance from Cassandra row."""
        return cls(
            id=row.id,
            student_id=row.student_id,
            certification_id=row.certification_id,
            issue_date=row.issue_date,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "certification_id": self.certification_id,
            "issue_date": self.issue_date,
        }

    def __repr__(self) -> str:
        return f"<Certificate {self.id} student={self.student_id}>"
