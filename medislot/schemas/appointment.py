from datetime import date as Date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.appointment import AppointmentStatus, CancelledBy, PaymentStatus
from .common import Pagination
from .prescription import PrescriptionResponse


class BookingRequest(BaseModel):
    """Raw booking input; the booking service checks each field in order."""

    doctor_id: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    reason: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)
    diagnosis: Optional[str] = Field(None, max_length=500)
    symptoms: Optional[str] = Field(None, max_length=500)
    prescription: Optional[str] = Field(None, max_length=2000)
    follow_up_date: Optional[Date] = None
    # Only used when the doctor moves the appointment to cancelled
    cancellation_reason: Optional[str] = Field(None, max_length=200)


class CancelRequest(BaseModel):
    cancellation_reason: Optional[str] = Field(None, max_length=200)


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    date: Date
    time: str
    reason: str
    status: AppointmentStatus
    consultation_fee: float
    payment_status: PaymentStatus
    notes: Optional[str] = None
    diagnosis: Optional[str] = None
    symptoms: Optional[str] = None
    prescription: Optional[str] = None
    follow_up_date: Optional[Date] = None
    cancelled_by: Optional[CancelledBy] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentList(BaseModel):
    appointments: List[AppointmentResponse]
    pagination: Pagination


class AppointmentDetail(BaseModel):
    appointment: AppointmentResponse
    prescription: Optional[PrescriptionResponse] = None


class StatusUpdateResponse(BaseModel):
    appointment: AppointmentResponse
    prescription: Optional[PrescriptionResponse] = None
