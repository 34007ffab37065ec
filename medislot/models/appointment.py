from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Date, Float, Text, Index,
    Enum as SQLEnum, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class CancelledBy(str, enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    SYSTEM = "system"


# Statuses that hold a slot
ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"

_ACTIVE_WHERE = text("status IN ('pending', 'confirmed')")


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Appointment details
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # slot start, "HH:MM"
    reason = Column(Text, nullable=False)
    status = Column(
        SQLEnum(AppointmentStatus, name="appointment_status", values_callable=_enum_values),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    consultation_fee = Column(Float, nullable=False, default=0)
    payment_status = Column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    # Clinical fields
    notes = Column(Text, nullable=True)
    diagnosis = Column(String(500), nullable=True)
    symptoms = Column(String(500), nullable=True)
    prescription = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)

    # Cancellation
    cancelled_by = Column(
        SQLEnum(CancelledBy, name="cancelled_by", values_callable=_enum_values),
        nullable=True,
    )
    cancellation_reason = Column(String(200), nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    doctor = relationship("User", foreign_keys=[doctor_id])
    prescription_record = relationship(
        "Prescription", back_populates="appointment", uselist=False
    )

    __table_args__ = (
        # At most one pending/confirmed appointment per doctor, day and start time
        Index(
            ACTIVE_SLOT_INDEX,
            "doctor_id", "date", "time",
            unique=True,
            postgresql_where=_ACTIVE_WHERE,
            sqlite_where=_ACTIVE_WHERE,
        ),
        Index("ix_appointments_doctor_date", "doctor_id", "date"),
        Index("ix_appointments_patient_date", "patient_id", "date"),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.date}', time='{self.time}')>"
