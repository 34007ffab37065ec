from datetime import date, datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from ..models.prescription import PrescriptionStatus
from .common import Pagination

MedicationUnit = Literal[
    "tablets", "capsules", "ml", "mg", "g", "units", "puffs", "drops", "patches"
]


class MedicationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    dosage: str = Field(..., min_length=1, max_length=50)
    frequency: str = Field(..., min_length=1, max_length=50)
    duration: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(..., ge=1)
    unit: MedicationUnit
    instructions: Optional[str] = Field(None, max_length=200)


class LabTest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=200)
    urgency: Literal["routine", "urgent", "emergency"] = "routine"


class LifestyleRecommendation(BaseModel):
    category: Literal["diet", "exercise", "sleep", "stress", "other"]
    recommendation: str = Field(..., min_length=1, max_length=200)


Allergy = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Contraindication = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class PrescriptionCreate(BaseModel):
    appointment_id: int
    diagnosis: str = Field(..., min_length=1, max_length=500)
    symptoms: Optional[str] = Field(None, max_length=500)
    medications: List[MedicationItem] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)
    follow_up_date: Optional[date] = None
    follow_up_required: bool = False
    lab_tests: List[LabTest] = Field(default_factory=list)
    lifestyle_recommendations: List[LifestyleRecommendation] = Field(default_factory=list)
    allergies: List[Allergy] = Field(default_factory=list)
    contraindications: List[Contraindication] = Field(default_factory=list)


class PrescriptionUpdate(BaseModel):
    diagnosis: Optional[str] = Field(None, min_length=1, max_length=500)
    symptoms: Optional[str] = Field(None, max_length=500)
    medications: Optional[List[MedicationItem]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    follow_up_date: Optional[date] = None
    follow_up_required: Optional[bool] = None
    lab_tests: Optional[List[LabTest]] = None
    lifestyle_recommendations: Optional[List[LifestyleRecommendation]] = None
    allergies: Optional[List[Allergy]] = None
    contraindications: Optional[List[Contraindication]] = None
    status: Optional[PrescriptionStatus] = None
    signature: Optional[str] = Field(None, max_length=255)


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    prescription_number: str
    formatted_prescription_number: str
    appointment_id: int
    doctor_id: int
    patient_id: int
    diagnosis: str
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    medications: List[MedicationItem]
    follow_up_date: Optional[date] = None
    follow_up_required: bool
    lab_tests: List[LabTest]
    lifestyle_recommendations: List[LifestyleRecommendation]
    allergies: List[str]
    contraindications: List[str]
    status: PrescriptionStatus
    is_digital: bool
    signature: Optional[str] = None
    created_at: Optional[datetime] = None


class PrescriptionList(BaseModel):
    prescriptions: List[PrescriptionResponse]
    pagination: Pagination
