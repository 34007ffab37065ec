from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional, Tuple
import logging

from ..core.exceptions import (
    DuplicatePrescriptionError, ForbiddenError, NotFoundError, StateError, ValidationError
)
from ..models.appointment import Appointment, AppointmentStatus, CancelledBy
from ..models.prescription import Prescription
from ..repositories.appointment_repository import AppointmentRepository, TIME_FILTERS
from ..repositories.prescription_repository import PrescriptionRepository
from ..schemas.appointment import AppointmentStatusUpdate
from .appointment_lifecycle import check_transition
from .prescription_service import PrescriptionService, check_follow_up_date

logger = logging.getLogger(__name__)

CANCELLATION_REASON_MAX_LENGTH = 200


def _require_cancellation_reason(reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise StateError(
            "Cancellation reason is required", details={"field": "cancellation_reason"}
        )
    if len(reason) > CANCELLATION_REASON_MAX_LENGTH:
        raise ValidationError(
            f"Cancellation reason cannot exceed {CANCELLATION_REASON_MAX_LENGTH} characters"
        )
    return reason


class AppointmentService:
    """Status changes, cancellations and lookups on existing appointments."""

    def __init__(self, db: Session):
        self.db = db
        self.appointments = AppointmentRepository(db)
        self.prescriptions = PrescriptionRepository(db)
        self.prescription_service = PrescriptionService(db)

    def _get(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.get(appointment_id)
        if not appointment:
            raise NotFoundError(
                "Appointment not found", details={"appointment_id": appointment_id}
            )
        return appointment

    def _get_for_doctor(self, doctor_id: int, appointment_id: int) -> Appointment:
        appointment = self._get(appointment_id)
        if appointment.doctor_id != doctor_id:
            raise ForbiddenError("You can only access your own appointments")
        return appointment

    def update_appointment_status(
        self,
        caller_id: int,
        appointment_id: int,
        update: AppointmentStatusUpdate,
        today: Optional[date] = None
    ) -> Tuple[Appointment, Optional[Prescription]]:
        """Apply a doctor's status change and clinical notes in one write.

        Completing with a diagnosis or prescription text also issues the
        appointment's prescription. Terminal appointments reject every change.
        """
        appointment = self._get_for_doctor(caller_id, appointment_id)
        current = appointment.status
        target = update.status or current

        check_transition(current, target)

        cancellation_reason = None
        if target == AppointmentStatus.CANCELLED:
            cancellation_reason = _require_cancellation_reason(update.cancellation_reason)
        check_follow_up_date(update.follow_up_date, today)

        issue_prescription = target == AppointmentStatus.COMPLETED and bool(
            update.diagnosis or update.prescription
        )
        if issue_prescription and self.prescriptions.get_by_appointment(appointment.id):
            raise DuplicatePrescriptionError(
                "Prescription already exists for this appointment",
                details={"appointment_id": appointment.id},
            )

        appointment.status = target
        if update.notes:
            appointment.notes = update.notes
        if update.prescription:
            appointment.prescription = update.prescription
        if update.diagnosis:
            appointment.diagnosis = update.diagnosis
        if update.symptoms:
            appointment.symptoms = update.symptoms
        if update.follow_up_date:
            appointment.follow_up_date = update.follow_up_date
        if cancellation_reason:
            appointment.cancelled_by = CancelledBy.DOCTOR
            appointment.cancellation_reason = cancellation_reason

        prescription = None
        if issue_prescription:
            prescription = self.prescription_service.stage_for_completion(
                appointment,
                diagnosis=update.diagnosis,
                symptoms=update.symptoms,
                prescription_text=update.prescription,
                follow_up_date=update.follow_up_date,
            )
            self.prescriptions.commit_new(prescription)
        else:
            self.appointments.commit()
        self.db.refresh(appointment)

        logger.info(
            f"Appointment {appointment.id} moved {current.value} -> {target.value} by doctor {caller_id}"
        )
        if prescription is not None:
            logger.info(
                f"Prescription {prescription.prescription_number} issued for appointment {appointment.id}"
            )
        return appointment, prescription

    def cancel_appointment(
        self,
        caller_id: int,
        appointment_id: int,
        reason: Optional[str]
    ) -> Appointment:
        """Cancel on behalf of the booking patient or the assigned doctor."""
        appointment = self._get(appointment_id)

        if caller_id == appointment.patient_id:
            cancelled_by = CancelledBy.PATIENT
        elif caller_id == appointment.doctor_id:
            cancelled_by = CancelledBy.DOCTOR
        else:
            raise ForbiddenError("You can only cancel your own appointments")

        reason = _require_cancellation_reason(reason)
        check_transition(appointment.status, AppointmentStatus.CANCELLED)

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_by = cancelled_by
        appointment.cancellation_reason = reason
        self.appointments.save(appointment)

        logger.info(f"Appointment {appointment.id} cancelled by {cancelled_by.value}")
        return appointment

    def get_doctor_appointment(
        self,
        doctor_id: int,
        appointment_id: int
    ) -> Tuple[Appointment, Optional[Prescription]]:
        appointment = self._get_for_doctor(doctor_id, appointment_id)
        return appointment, self.prescriptions.get_by_appointment(appointment.id)

    def list_patient_appointments(
        self,
        patient_id: int,
        status: Optional[AppointmentStatus] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Appointment], int]:
        return self.appointments.list_for_patient(
            patient_id, status, skip=(page - 1) * limit, limit=limit
        )

    def list_doctor_appointments(
        self,
        doctor_id: int,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None,
        time_filter: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Appointment], int]:
        if time_filter and time_filter not in TIME_FILTERS:
            raise ValidationError(
                "Unknown time filter", details={"time_filter": time_filter, "allowed": list(TIME_FILTERS)}
            )
        return self.appointments.list_for_doctor(
            doctor_id,
            status=status,
            on_date=on_date,
            time_filter=time_filter,
            search=search,
            skip=(page - 1) * limit,
            limit=limit,
        )
