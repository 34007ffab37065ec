from typing import List, Optional, Tuple

from ..core.config import settings
from ..core.exceptions import DuplicatePrescriptionError
from ..models.prescription import Prescription, PrescriptionStatus
from .base import BaseRepository


def format_prescription_number(sequence: int) -> str:
    return f"{settings.PRESCRIPTION_NUMBER_PREFIX}{sequence:0{settings.PRESCRIPTION_NUMBER_WIDTH}d}"


class PrescriptionRepository(BaseRepository):

    def get(self, prescription_id: int) -> Optional[Prescription]:
        return self.db.query(Prescription).filter(Prescription.id == prescription_id).first()

    def get_by_appointment(self, appointment_id: int) -> Optional[Prescription]:
        return self.db.query(Prescription).filter(
            Prescription.appointment_id == appointment_id
        ).first()

    def add(self, prescription: Prescription) -> Prescription:
        """Stage a new prescription and give it its number; the caller commits.

        The number is derived from the row id, so it is sequential and unique
        without a separate counter.
        """
        self.db.add(prescription)
        self.flush(
            conflict=DuplicatePrescriptionError(
                "Prescription already exists for this appointment",
                details={"appointment_id": prescription.appointment_id},
            )
        )
        prescription.prescription_number = format_prescription_number(prescription.id)
        return prescription

    def commit_new(self, prescription: Prescription) -> Prescription:
        """Commit a staged prescription, numbering it first if it has no number yet."""
        if prescription.prescription_number is None:
            self.add(prescription)
        self.commit(
            conflict=DuplicatePrescriptionError(
                "Prescription already exists for this appointment",
                details={"appointment_id": prescription.appointment_id},
            )
        )
        self.db.refresh(prescription)
        return prescription

    def _list(self, query, status: Optional[PrescriptionStatus], skip: int, limit: int):
        if status:
            query = query.filter(Prescription.status == status)
        total = query.count()
        prescriptions = query.order_by(Prescription.created_at.desc(), Prescription.id.desc()) \
            .offset(skip).limit(limit).all()
        return prescriptions, total

    def list_for_doctor(
        self,
        doctor_id: int,
        status: Optional[PrescriptionStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Prescription], int]:
        query = self.db.query(Prescription).filter(Prescription.doctor_id == doctor_id)
        return self._list(query, status, skip, limit)

    def list_for_patient(
        self,
        patient_id: int,
        status: Optional[PrescriptionStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Prescription], int]:
        query = self.db.query(Prescription).filter(Prescription.patient_id == patient_id)
        return self._list(query, status, skip, limit)
