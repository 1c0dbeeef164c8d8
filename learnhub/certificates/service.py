"""Certificate issuing service.

A certificate is issued once per (student, certification), only after the
certification enrollment has a ``completed_at``. Repeated requests return
the certificate minted the first time.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.catalog.models import Certification, UnitKind, UnitRef
from learnhub.core.exceptions import NotCompletedError, NotEnrolledError
from learnhub.utils.timeutils import utc_now

from .models import Certificate, mint_certificate_id


if TYPE_CHECKING:
    from learnhub.catalog.service import CatalogService
    from learnhub.enrollments.models import EnrollmentRecord
    from learnhub.enrollments.store import EnrollmentStore

    from .store import CertificateStore

logger = structlog.get_logger(__name__)


@dataclass
class IssuedCertificate:
    """Certificate together with the certification it was issued for."""

    certificate: Certificate
    certification: Certification
    created: bool


class CertificateService:
    """Issues certificates for completed certifications."""

    def __init__(
        self,
        catalog: "CatalogService",
        enrollments: "EnrollmentStore",
        certificates: "CertificateStore",
    ):
        self.catalog = catalog
        self.enrollments = enrollments
        self.certificates = certificates

    async def issue(self, student_id: UUID, certification_id: UUID) -> IssuedCertificate:
        """Issue (or re-read) the certificate of a completed certification.

        Raises:
            UnitNotFoundError: If the certification does not exist
            NotEnrolledError: If the student is not enrolled in it
            NotCompletedError: If the enrollment is not completed yet
        """
        ref = UnitRef(UnitKind.CERTIFICATION, certification_id)
        certification = await self.catalog.get_unit(ref)

        enrollment = await self.enrollments.get(student_id, ref)
        if enrollment is None:
            raise NotEnrolledError("Not enrolled in this certification")
        if enrollment.completed_at is None:
            raise NotCompletedError

        return await self.issue_for_enrollment(certification, enrollment)

    async def issue_for_enrollment(
        self, certification: Certification, enrollment: "EnrollmentRecord"
    ) -> IssuedCertificate:
        """Issue the certificate of an enrollment known to be completed."""
        student_id = enrollment.student_id
        existing = await self.certificates.get(student_id, certification.id)
        if existing:
            return IssuedCertificate(existing, certification, created=False)

        certificate, created = await self.certificates.insert_if_absent(
            Certificate(
                id=mint_certificate_id(),
                student_id=student_id,
                certification_id=certification.id,
                issue_date=utc_now(),
            )
        )
        if created or enrollment.certificate_id != certificate.id:
            await self.enrollments.set_certificate(
                student_id, certification.ref, certificate.id
            )
            enrollment.certificate_id = certificate.id

        if created:
            logger.info(
                "certificate_issued",
                student_id=str(student_id),
                certification_id=str(certification.id),
                certificate_id=certificate.id,
            )
        return IssuedCertificate(certificate, certification, created=created)
