from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from ...api.deps import booking_rate_limit, get_patient_user
from ...core.database import get_db
from ...models.appointment import AppointmentStatus
from ...models.user import User
from ...schemas.appointment import (
    AppointmentList, AppointmentResponse, BookingRequest, CancelRequest
)
from ...schemas.common import Pagination
from ...schemas.prescription import PrescriptionList, PrescriptionResponse
from ...services.appointment_service import AppointmentService
from ...services.booking_service import BookingService
from ...services.prescription_service import PrescriptionService

router = APIRouter(prefix="/patient", tags=["Patient"])


@router.post(
    "/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_rate_limit)],
)
def book_appointment(
    booking: BookingRequest,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Book a slot with a verified doctor."""
    appointment = BookingService(db).book_appointment(current_user.id, booking)
    return AppointmentResponse.model_validate(appointment)


@router.get("/appointments", response_model=AppointmentList)
def list_appointments(
    status: Optional[AppointmentStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    appointments, total = AppointmentService(db).list_patient_appointments(
        current_user.id, status=status, page=page, limit=limit
    )
    return AppointmentList(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        pagination=Pagination.build(page, limit, total),
    )


@router.patch("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    cancel: CancelRequest,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).cancel_appointment(
        current_user.id, appointment_id, cancel.cancellation_reason
    )
    return AppointmentResponse.model_validate(appointment)


@router.get("/prescriptions", response_model=PrescriptionList)
def list_prescriptions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    prescriptions, total = PrescriptionService(db).list_for_patient(
        current_user.id, page=page, limit=limit
    )
    return PrescriptionList(
        prescriptions=[PrescriptionResponse.model_validate(p) for p in prescriptions],
        pagination=Pagination.build(page, limit, total),
    )
