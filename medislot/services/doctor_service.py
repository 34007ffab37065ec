from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import logging

from ..core.exceptions import NotFoundError
from ..models.doctor import Doctor
from ..models.user import User
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class DoctorService:
    """The verified-doctor directory and the admin controls around it."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)

    def list_verified_doctors(
        self,
        specialization: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Doctor], int]:
        return self.users.list_verified_doctors(
            specialization=specialization,
            search=search,
            skip=(page - 1) * limit,
            limit=limit,
        )

    def get_verified_doctor(self, doctor_id: int) -> Doctor:
        user = self.users.get_verified_doctor(doctor_id)
        if not user:
            # Unverified doctors are reported as missing
            raise NotFoundError("Doctor not found", details={"doctor_id": doctor_id})
        return user.doctor

    def set_verification(self, doctor_id: int, is_verified: bool) -> Doctor:
        user = self.users.get_doctor(doctor_id)
        if not user or not user.doctor:
            raise NotFoundError("Doctor not found", details={"doctor_id": doctor_id})

        user.doctor.is_verified = is_verified
        self.users.save(user.doctor)
        logger.info(f"Doctor {doctor_id} {'verified' if is_verified else 'unverified'}")
        return user.doctor

    def set_user_active(self, user_id: int, is_active: bool) -> User:
        user = self.users.get(user_id)
        if not user:
            raise NotFoundError("User not found", details={"user_id": user_id})

        user.is_active = is_active
        self.users.save(user)
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return user
