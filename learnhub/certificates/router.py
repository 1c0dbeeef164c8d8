"""Certificate API endpoints."""

from fastapi import APIRouter, Response, status

from learnhub.auth.dependencies import CurrentStudent
from learnhub.core.exceptions import LearnHubError, handle_error

from .dependencies import CertificateServiceDep
from .schemas import CertificateResponse, IssueCertificateRequest


router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


@router.post(
    "",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue certificate",
)
async def issue_certificate(
    data: IssueCertificateRequest,
    response: Response,
    service: CertificateServiceDep,
    student: CurrentStudent,
) -> CertificateResponse:
    """Issue the certificate of a completed certification.

    The certificate id is minted once; later calls return it with 200.
    """
    try:
        issued = await service.issue(student.id, data.certification_id)
    except LearnHubError as e:
        raise handle_error(e) from e

    if not issued.created:
        response.status_code = status.HTTP_200_OK
    return CertificateResponse.from_issued(issued)
