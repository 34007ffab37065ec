from typing import List, Optional, Tuple

from sqlalchemy import or_

from ..core.security import UserRole
from ..models.doctor import Doctor
from ..models.user import User
from .base import BaseRepository


class UserRepository(BaseRepository):

    def get(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_doctor(self, user_id: int) -> Optional[User]:
        """A user with the doctor role, verified or not."""
        return self.db.query(User).filter(
            User.id == user_id,
            User.role == UserRole.DOCTOR
        ).first()

    def get_verified_doctor(self, user_id: int) -> Optional[User]:
        return self.db.query(User).join(Doctor, Doctor.user_id == User.id).filter(
            User.id == user_id,
            User.role == UserRole.DOCTOR,
            User.is_active == True,  # noqa: E712
            Doctor.is_verified == True,  # noqa: E712
        ).first()

    def list_verified_doctors(
        self,
        specialization: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Doctor], int]:
        query = self.db.query(Doctor).join(User, Doctor.user_id == User.id).filter(
            Doctor.is_verified == True,  # noqa: E712
            User.is_active == True,  # noqa: E712
        )

        if specialization:
            query = query.filter(Doctor.specialization.ilike(f"%{specialization}%"))

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Doctor.first_name.ilike(pattern),
                Doctor.last_name.ilike(pattern),
                Doctor.specialization.ilike(pattern),
            ))

        total = query.count()
        doctors = query.order_by(Doctor.created_at.desc(), Doctor.id.desc()) \
            .offset(skip).limit(limit).all()
        return doctors, total

    def list_users(self, skip: int = 0, limit: int = 10) -> List[User]:
        return self.db.query(User).order_by(User.id).offset(skip).limit(limit).all()
