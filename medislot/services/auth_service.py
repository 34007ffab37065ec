from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime
import logging

from ..core.config import settings
from ..core.security import (
    verify_password, get_password_hash, create_access_token, UserRole
)
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)

    def register_user(self, user_data: UserRegister) -> User:
        """Register a patient or an (unverified) doctor with their profile."""
        if self.users.get_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            is_active=True,
        )

        if user_data.role == UserRole.DOCTOR:
            new_user.doctor = Doctor(
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                specialization=user_data.specialization,
                license_number=user_data.license_number,
                years_of_experience=user_data.years_of_experience,
                location=user_data.location,
                consultation_fee=user_data.consultation_fee,
                phone_number=user_data.phone_number,
                is_verified=False,
            )
        else:
            new_user.patient = Patient(
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                phone_number=user_data.phone_number,
            )

        self.users.save(new_user)
        logger.info(f"Registered {new_user.role.value} {new_user.id}")
        return new_user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        user = self.users.get_by_email(login_data.email)

        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        user.last_login = datetime.utcnow()
        self.users.save(user)

        return TokenResponse(
            access_token=create_access_token(user.id, user.email, user.role),
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserResponse.model_validate(user),
        )
