"""Enrollment API endpoints.

Provides routes for:
- Enrolling in a course, certification or learning path
- Listing the acting student's enrollments
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from learnhub.auth.dependencies import CurrentStudent
from learnhub.catalog.models import UnitKind, UnitRef
from learnhub.core.exceptions import LearnHubError, handle_error

from .dependencies import EnrollmentCascadeDep, EnrollmentStoreDep
from .schemas import EnrollmentListResponse, EnrollmentResponse, EnrollRequest


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a unit",
)
async def enroll(
    data: EnrollRequest,
    response: Response,
    cascade: EnrollmentCascadeDep,
    student: CurrentStudent,
) -> EnrollmentResponse:
    """Enroll the current student in a unit and everything below it.

    Enrolling twice returns the existing enrollment with 200.
    """
    try:
        report = await cascade.enroll_with_report(
            student.id, UnitRef(data.unit_kind, data.unit_id)
        )
    except LearnHubError as e:
        raise handle_error(e) from e

    if not report.created:
        response.status_code = status.HTTP_200_OK
    return EnrollmentResponse.from_entity(report.enrollment)


@router.get(
    "/my",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    store: EnrollmentStoreDep,
    student: CurrentStudent,
) -> EnrollmentListResponse:
    """List every enrollment of the current student."""
    try:
        enrollments = await store.list_for_student(student.id)
    except LearnHubError as e:
        raise handle_error(e) from e

    items = [EnrollmentResponse.from_entity(e) for e in enrollments]
    return EnrollmentListResponse(items=items, total=len(items))


@router.get(
    "/{unit_kind}/{unit_id}",
    response_model=EnrollmentResponse,
    summary="Get enrollment",
)
async def get_enrollment(
    unit_kind: UnitKind,
    unit_id: UUID,
    store: EnrollmentStoreDep,
    student: CurrentStudent,
) -> EnrollmentResponse:
    """Get the current student's enrollment in a unit."""
    try:
        enrollment = await store.get(student.id, UnitRef(unit_kind, unit_id))
    except LearnHubError as e:
        raise handle_error(e) from e

    if enrollment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Enrollment not found",
        )
    return EnrollmentResponse.from_entity(enrollment)
