"""
Pydantic schemas for accounts, login and notification preferences.
"""
import re
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator

from models.user import UserRole


class RegisterRequest(BaseModel):
     email: str = Field(..., min_length=3, max_length=255)
     password: str = Field(..., min_length=6, max_length=128)
     name: str = Field(..., min_length=1, max_length=200)
     phone: Optional[str] = Field(None, max_length=50)


class UserCreate(RegisterRequest):
     """Admin provisioning; may create tenants or further admins."""
     role: UserRole = UserRole.TENANT


class LoginRequest(BaseModel):
     email: str
     password: str


class UserResponse(BaseModel):
     id: int
     email: str
     name: str
     phone: Optional[str] = None
     role: UserRole
     room_id: Optional[int] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
     token: str
     user: UserResponse


class NotificationPreferencesUpdate(BaseModel):
     """Partial update; each section is merged into the stored preferences."""
     email: Optional[Dict[str, bool]] = None
     in_app: Optional[Dict[str, bool]] = None
     quiet_hours: Optional[Dict[str, Any]] = None


class ProfileResponse(UserResponse):
     room_number: Optional[str] = None


class ProfileUpdate(BaseModel):
     name: str = Field(..., max_length=200)
     phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")

     @field_validator("name")
     @classmethod
     def _strip_name(cls, value: str) -> str:
          value = value.strip()
          if len(value) < 2:
               raise ValueError("Name must be at least 2 characters long")
          return value


class PasswordChangeRequest(BaseModel):
     current_password: str = Field(..., min_length=1)
     new_password: str = Field(..., min_length=8, max_length=128)

     @field_validator("new_password")
     @classmethod
     def _strength(cls, value: str) -> str:
          if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
               raise ValueError("Password needs an uppercase letter, a lowercase letter and a number")
          return value
