from .user import User
from .doctor import Doctor
from .patient import Patient
from .schedule import Schedule
from .appointment import Appointment, AppointmentStatus, PaymentStatus, CancelledBy
from .prescription import Prescription, PrescriptionStatus, Medication

__all__ = [
    "User",
    "Doctor",
    "Patient",
    "Schedule",
    "Appointment",
    "AppointmentStatus",
    "PaymentStatus",
    "CancelledBy",
    "Prescription",
    "PrescriptionStatus",
    "Medication",
]
