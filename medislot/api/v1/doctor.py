from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from ...api.deps import get_doctor_user
from ...core.database import get_db
from ...models.appointment import AppointmentStatus
from ...models.prescription import PrescriptionStatus
from ...models.user import User
from ...schemas.appointment import (
    AppointmentDetail, AppointmentList, AppointmentResponse,
    AppointmentStatusUpdate, CancelRequest, StatusUpdateResponse
)
from ...schemas.common import Pagination
from ...schemas.prescription import (
    PrescriptionCreate, PrescriptionList, PrescriptionResponse, PrescriptionUpdate
)
from ...schemas.schedule import AvailabilityResponse, ScheduleResponse, ScheduleUpdate
from ...services.appointment_service import AppointmentService
from ...services.booking_service import BookingService, parse_date
from ...services.prescription_service import PrescriptionService
from ...services.schedule_service import ScheduleService

router = APIRouter(prefix="/doctor", tags=["Doctor"])


def _prescription_or_none(prescription):
    if prescription is None:
        return None
    return PrescriptionResponse.model_validate(prescription)


# Schedule
@router.get("/schedule", response_model=ScheduleResponse)
def get_schedule(
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    return ScheduleResponse.model_validate(ScheduleService(db).get_schedule(current_user.id))


@router.put("/schedule", response_model=ScheduleResponse)
def update_schedule(
    update: ScheduleUpdate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    schedule = ScheduleService(db).update_schedule(current_user.id, update)
    return ScheduleResponse.model_validate(schedule)


@router.get("/schedule/slots/{date}", response_model=AvailabilityResponse)
def get_own_slots(
    date: str,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    """Preview of the doctor's own free slots for a date."""
    return BookingService(db).get_availability(current_user.id, parse_date(date))


# Appointments
@router.get("/appointments", response_model=AppointmentList)
def list_appointments(
    status: Optional[AppointmentStatus] = None,
    date: Optional[str] = None,
    time_filter: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    appointments, total = AppointmentService(db).list_doctor_appointments(
        current_user.id,
        status=status,
        on_date=parse_date(date) if date else None,
        time_filter=time_filter,
        search=search,
        page=page,
        limit=limit,
    )
    return AppointmentList(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/appointments/{appointment_id}", response_model=AppointmentDetail)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    appointment, prescription = AppointmentService(db).get_doctor_appointment(
        current_user.id, appointment_id
    )
    return AppointmentDetail(
        appointment=AppointmentResponse.model_validate(appointment),
        prescription=_prescription_or_none(prescription),
    )


@router.patch("/appointments/{appointment_id}/status", response_model=StatusUpdateResponse)
def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    appointment, prescription = AppointmentService(db).update_appointment_status(
        current_user.id, appointment_id, update
    )
    return StatusUpdateResponse(
        appointment=AppointmentResponse.model_validate(appointment),
        prescription=_prescription_or_none(prescription),
    )


@router.patch("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    cancel: CancelRequest,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).cancel_appointment(
        current_user.id, appointment_id, cancel.cancellation_reason
    )
    return AppointmentResponse.model_validate(appointment)


# Prescriptions
@router.post(
    "/prescriptions",
    response_model=PrescriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_prescription(
    data: PrescriptionCreate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    prescription = PrescriptionService(db).create_prescription(current_user.id, data)
    return PrescriptionResponse.model_validate(prescription)


@router.get("/prescriptions", response_model=PrescriptionList)
def list_prescriptions(
    status: Optional[PrescriptionStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    prescriptions, total = PrescriptionService(db).list_for_doctor(
        current_user.id, status=status, page=page, limit=limit
    )
    return PrescriptionList(
        prescriptions=[PrescriptionResponse.model_validate(p) for p in prescriptions],
        pagination=Pagination.build(page, limit, total),
    )


@router.put("/prescriptions/{prescription_id}", response_model=PrescriptionResponse)
def update_prescription(
    prescription_id: int,
    update: PrescriptionUpdate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    prescription = PrescriptionService(db).update_prescription(
        current_user.id, prescription_id, update
    )
    return PrescriptionResponse.model_validate(prescription)
