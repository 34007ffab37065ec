from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api.deps import get_admin_user
from ...core.database import get_db
from ...repositories.user_repository import UserRepository
from ...schemas.auth import UserResponse
from ...schemas.doctor import DoctorProfile, UserStatusUpdate, VerificationUpdate
from ...services.doctor_service import DoctorService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_admin_user)])


@router.get("/users")
def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """List all users (admin only)."""
    users = UserRepository(db).list_users(skip=skip, limit=limit)
    return [UserResponse.model_validate(user) for user in users]


@router.patch("/users/{user_id}/status")
def update_user_status(
    user_id: int,
    update: UserStatusUpdate,
    db: Session = Depends(get_db)
):
    """Update user active status (admin only)."""
    DoctorService(db).set_user_active(user_id, update.is_active)
    return {"message": f"User {'activated' if update.is_active else 'deactivated'} successfully"}


@router.patch("/doctors/{doctor_id}/verification", response_model=DoctorProfile)
def update_doctor_verification(
    doctor_id: int,
    update: VerificationUpdate,
    db: Session = Depends(get_db)
):
    """Verify or unverify a doctor (admin only)."""
    doctor = DoctorService(db).set_verification(doctor_id, update.is_verified)
    return DoctorProfile.model_validate(doctor)
