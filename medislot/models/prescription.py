from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Date, Boolean, Text, JSON,
    Enum as SQLEnum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base


class PrescriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    # Assigned from the row id before the first commit; never reassigned
    prescription_number = Column(String(32), unique=True, nullable=True, index=True)

    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    diagnosis = Column(String(500), nullable=False)
    symptoms = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)
    follow_up_required = Column(Boolean, nullable=False, default=False)

    # [{"name": ..., "description": ..., "urgency": "routine"}]
    lab_tests = Column(JSON, nullable=False, default=list)
    # [{"category": "diet", "recommendation": ...}]
    lifestyle_recommendations = Column(JSON, nullable=False, default=list)
    allergies = Column(JSON, nullable=False, default=list)
    contraindications = Column(JSON, nullable=False, default=list)

    status = Column(
        SQLEnum(
            PrescriptionStatus,
            name="prescription_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=PrescriptionStatus.ACTIVE,
    )
    is_digital = Column(Boolean, nullable=False, default=True)
    signature = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointment = relationship("Appointment", back_populates="prescription_record")
    doctor = relationship("User", foreign_keys=[doctor_id])
    patient = relationship("User", foreign_keys=[patient_id])
    medications = relationship(
        "Medication",
        back_populates="prescription",
        order_by="Medication.position",
        cascade="all, delete-orphan",
    )

    @property
    def formatted_prescription_number(self):
        if not self.prescription_number:
            return None
        return f"RX-{self.prescription_number}"

    @property
    def medications_count(self) -> int:
        return len(self.medications)

    def __repr__(self):
        return f"<Prescription(id={self.id}, number='{self.prescription_number}', appointment_id={self.appointment_id})>"


class Medication(Base):
    __tablename__ = "prescription_medications"

    id = Column(Integer, primary_key=True, index=True)
    prescription_id = Column(Integer, ForeignKey("prescriptions.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(100), nullable=False)
    dosage = Column(String(50), nullable=False)
    frequency = Column(String(50), nullable=False)
    duration = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit = Column(String(20), nullable=False)
    instructions = Column(String(200), nullable=True)

    prescription = relationship("Prescription", back_populates="medications")

    def __repr__(self):
        return f"<Medication(name='{self.name}', dosage='{self.dosage}')>"
