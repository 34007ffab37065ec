from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .common import Pagination


class DoctorProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str
    last_name: str
    specialization: str
    years_of_experience: Optional[int] = None
    qualification: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    consultation_fee: Optional[float] = None
    is_verified: bool


class DoctorList(BaseModel):
    doctors: List[DoctorProfile]
    pagination: Pagination


class VerificationUpdate(BaseModel):
    is_verified: bool


class UserStatusUpdate(BaseModel):
    is_active: bool
