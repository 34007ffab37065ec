from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ..core.security import UserRole


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole = UserRole.PATIENT
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=20)

    # Doctor profile
    specialization: Optional[str] = Field(None, min_length=2, max_length=100)
    license_number: Optional[str] = Field(None, max_length=50)
    years_of_experience: Optional[int] = Field(None, ge=0, le=50)
    location: Optional[str] = Field(None, max_length=200)
    consultation_fee: Optional[float] = Field(None, ge=0, le=10000)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not any(c.islower() for c in v) or not any(c.isupper() for c in v) \
                or not any(c.isdigit() for c in v):
            raise ValueError(
                "Password must contain an uppercase letter, a lowercase letter and a number"
            )
        return v

    @model_validator(mode="after")
    def validate_role(self):
        if self.role == UserRole.ADMIN:
            raise ValueError("Administrators cannot self-register")
        if self.role == UserRole.DOCTOR and not (self.specialization and self.license_number):
            raise ValueError("Specialization and license number are required for doctors")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole
    is_active: bool
    full_name: str
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
