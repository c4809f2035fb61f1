# routers/users.py
"""
User administration, the caller's profile and notification preferences.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_admin
from models import User, UserRole
from routers.auth import create_user
from schemas.user import (
     NotificationPreferencesUpdate,
     PasswordChangeRequest,
     ProfileResponse,
     ProfileUpdate,
     UserCreate,
     UserResponse,
)
from services.notification_service import get_notification_preferences, invalidate_notification_preferences
from services.user_service import UserService

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/users", response_model=List[UserResponse])
def list_users(
     role: Optional[UserRole] = Query(None),
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     query = db.query(User)
     if role:
          query = query.filter(User.role == role)
     return query.order_by(User.id).all()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def provision_user(
     body: UserCreate,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return create_user(db, body, body.role)


@router.get("/profile", response_model=ProfileResponse)
def get_profile(db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return UserService.get_profile(db, user)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(body: ProfileUpdate, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     UserService.update_profile(db, user, body.name, body.phone)
     return UserService.get_profile(db, user)


@router.put("/profile/password")
def change_password(
     body: PasswordChangeRequest,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     UserService.change_password(db, user, body.current_password, body.new_password)
     return {"success": True}


@router.get("/profile/notifications")

def get_preferences(db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return get_notification_preferences(db, user.id)


@router.put("/profile/notifications")
def update_preferences(
     body: NotificationPreferencesUpdate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     prefs = user.get_notification_preferences()
     for section, values in body.model_dump(exclude_none=True).items():
          prefs[section].update(values)
     # Reassign so the JSON column registers the change
     user.notification_preferences = prefs
     db.flush()
     invalidate_notification_preferences(user.id)
     return prefs
