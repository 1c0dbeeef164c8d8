"""Pydantic schemas for certificates."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .service import IssuedCertificate


class IssueCertificateRequest(BaseModel):
    """Request to issue a certificate."""

    certification_id: UUID = Field(..., description="Completed certification UUID")


class CertificateResponse(BaseModel):
    """Certificate with the data needed to render it."""

    id: str
    student_id: UUID
    certification_id: UUID
    issue_date: datetime
    certification_title: str
    certification_description: str | None = None
    skills: list[str] = Field(default_factory=list)

    @classmethod
    def from_issued(cls, issued: IssuedCertificate) -> "CertificateResponse":
        """Create response from an issued certificate."""
        return cls(
            id=issued.certificate.id,
            student_id=issued.certificate.student_id,
            certification_id=issued.certificate.certification_id,
            issue_date=issued.certificate.issue_date,
            certification_title=issued.certification.title,
            certification_description=issued.certification.description,
            skills=issued.certification.skills,
        )
