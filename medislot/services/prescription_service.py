from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional, Tuple
import logging

from ..core.exceptions import (
    DuplicatePrescriptionError, ForbiddenError,
    NotFoundError, ValidationError
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.prescription import Medication, Prescription, PrescriptionStatus
from ..repositories.appointment_repository import AppointmentRepository
from ..repositories.prescription_repository import PrescriptionRepository
from ..schemas.prescription import MedicationItem, PrescriptionCreate, PrescriptionUpdate
from .appointment_lifecycle import check_transition

logger = logging.getLogger(__name__)

DEFAULT_DIAGNOSIS = "No specific diagnosis"


def check_follow_up_date(follow_up_date: Optional[date], today: Optional[date] = None):
    if follow_up_date is not None and follow_up_date <= (today or date.today()):
        raise ValidationError(
            "Follow-up date must be in the future",
            details={"follow_up_date": follow_up_date.isoformat()},
        )


def _medications(items: List[MedicationItem]) -> List[Medication]:
    return [
        Medication(position=position, **item.model_dump())
        for position, item in enumerate(items)
    ]


class PrescriptionService:
    def __init__(self, db: Session):
        self.db = db
        self.prescriptions = PrescriptionRepository(db)
        self.appointments = AppointmentRepository(db)

    def _ensure_none_issued(self, appointment: Appointment):
        if self.prescriptions.get_by_appointment(appointment.id):
            raise DuplicatePrescriptionError(
                "Prescription already exists for this appointment",
                details={"appointment_id": appointment.id},
            )

    def stage_for_completion(
        self,
        appointment: Appointment,
        diagnosis: Optional[str],
        symptoms: Optional[str],
        prescription_text: Optional[str],
        follow_up_date: Optional[date]
    ) -> Prescription:
        """Add the prescription issued when an appointment completes; the caller commits."""
        self._ensure_none_issued(appointment)
        prescription = Prescription(
            appointment_id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            diagnosis=diagnosis or DEFAULT_DIAGNOSIS,
            symptoms=symptoms or "",
            notes=prescription_text or "",
            medications=[],
            lab_tests=[],
            lifestyle_recommendations=[],
            allergies=[],
            contraindications=[],
            follow_up_date=follow_up_date,
            follow_up_required=follow_up_date is not None,
            status=PrescriptionStatus.ACTIVE,
        )
        return self.prescriptions.add(prescription)

    def create_prescription(
        self,
        doctor_id: int,
        data: PrescriptionCreate,
        today: Optional[date] = None
    ) -> Prescription:
        """Issue a full prescription for one of the doctor's appointments.

        A pending or confirmed appointment is completed as part of the same
        write; a completed one must not already carry a prescription.
        """
        appointment = self.appointments.get(data.appointment_id)
        if not appointment:
            raise NotFoundError(
                "Appointment not found", details={"appointment_id": data.appointment_id}
            )
        if appointment.doctor_id != doctor_id:
            raise ForbiddenError("You can only create prescriptions for your appointments")

        self._ensure_none_issued(appointment)

        if appointment.status != AppointmentStatus.COMPLETED:
            check_transition(appointment.status, AppointmentStatus.COMPLETED)
        check_follow_up_date(data.follow_up_date, today)

        prescription = Prescription(
            appointment_id=appointment.id,
            doctor_id=doctor_id,
            patient_id=appointment.patient_id,
            diagnosis=data.diagnosis,
            symptoms=data.symptoms,
            notes=data.notes,
            medications=_medications(data.medications),
            follow_up_date=data.follow_up_date,
            follow_up_required=data.follow_up_required or data.follow_up_date is not None,
            lab_tests=[test.model_dump() for test in data.lab_tests],
            lifestyle_recommendations=[rec.model_dump() for rec in data.lifestyle_recommendations],
            allergies=list(data.allergies),
            contraindications=list(data.contraindications),
            status=PrescriptionStatus.ACTIVE,
        )
        self.prescriptions.add(prescription)

        appointment.status = AppointmentStatus.COMPLETED
        appointment.diagnosis = data.diagnosis
        if data.symptoms is not None:
            appointment.symptoms = data.symptoms
        if data.notes is not None:
            appointment.notes = data.notes

        prescription = self.prescriptions.commit_new(prescription)
        logger.info(
            f"Prescription {prescription.prescription_number} issued for appointment {appointment.id}"
        )
        return prescription

    def update_prescription(
        self,
        doctor_id: int,
        prescription_id: int,
        update: PrescriptionUpdate,
        today: Optional[date] = None
    ) -> Prescription:
        prescription = self.prescriptions.get(prescription_id)
        if not prescription:
            raise NotFoundError(
                "Prescription not found", details={"prescription_id": prescription_id}
            )
        if prescription.doctor_id != doctor_id:
            raise ForbiddenError("You can only update your own prescriptions")

        fields = update.model_dump(exclude_unset=True)
        if "follow_up_date" in fields:
            check_follow_up_date(update.follow_up_date, today)

        if update.medications is not None:
            prescription.medications = _medications(update.medications)
        for key in ("lab_tests", "lifestyle_recommendations", "allergies", "contraindications"):
            if key in fields and fields[key] is not None:
                setattr(prescription, key, fields[key])
        for key in (
            "diagnosis", "symptoms", "notes", "follow_up_date",
            "follow_up_required", "status", "signature",
        ):
            if key in fields and (fields[key] is not None or key in ("follow_up_date", "signature")):
                setattr(prescription, key, fields[key])

        self.prescriptions.save(prescription)
        logger.info(f"Prescription {prescription.prescription_number} updated")
        return prescription

    def list_for_doctor(
        self,
        doctor_id: int,
        status: Optional[PrescriptionStatus] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Prescription], int]:
        return self.prescriptions.list_for_doctor(
            doctor_id, status, skip=(page - 1) * limit, limit=limit
        )

    def list_for_patient(
        self,
        patient_id: int,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Prescription], int]:
        return self.prescriptions.list_for_patient(
            patient_id, skip=(page - 1) * limit, limit=limit
        )
