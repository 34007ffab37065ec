from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...schemas.common import Pagination
from ...schemas.doctor import DoctorList, DoctorProfile
from ...schemas.schedule import AvailabilityResponse
from ...services.booking_service import BookingService
from ...services.doctor_service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("", response_model=DoctorList)
def list_doctors(
    specialization: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """List verified doctors."""
    doctors, total = DoctorService(db).list_verified_doctors(
        specialization=specialization, search=search, page=page, limit=limit
    )
    return DoctorList(
        doctors=[DoctorProfile.model_validate(doctor) for doctor in doctors],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{doctor_id}", response_model=DoctorProfile)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    return DoctorProfile.model_validate(DoctorService(db).get_verified_doctor(doctor_id))


@router.get("/{doctor_id}/availability/{date}", response_model=AvailabilityResponse)
def get_doctor_availability(doctor_id: int, date: str, db: Session = Depends(get_db)):
    """Bookable slots for one date, with already reserved starts removed."""
    return BookingService(db).get_public_availability(doctor_id, date)
