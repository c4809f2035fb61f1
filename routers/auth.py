# routers/auth.py
"""
Account API: tenant self-registration, login, first-admin bootstrap,
and the current user.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import create_access_token, get_current_user, hash_password, verify_password
from models import User, UserRole
from schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from utils.errors import AuthenticationError, ConflictError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def create_user(db: Session, body: RegisterRequest, role: UserRole) -> User:
     """Shared by registration, bootstrap and admin provisioning."""
     email = body.email.strip().lower()
     if db.query(User.id).filter(User.email == email).first():
          raise ConflictError("อีเมลนี้ถูกใช้งานแล้ว")
     user = User(
          email=email,
          password=hash_password(body.password),
          name=body.name,
          phone=body.phone,
          role=role,
     )
     db.add(user)
     db.flush()
     logger.info("user_created", user_id=user.id, role=role.value)
     return user


@router.post(
     "/auth/register",
     response_model=UserResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Register a tenant account"
)
def register(body: RegisterRequest, db: Session = Depends(get_session)):
     return create_user(db, body, UserRole.TENANT)


@router.post("/auth/login", response_model=LoginResponse, summary="Log in")
def login(body: LoginRequest, db: Session = Depends(get_session)):
     user = db.query(User).filter(User.email == body.email.strip().lower()).first()
     if not user or not verify_password(body.password, user.password):
          raise AuthenticationError("อีเมลหรือรหัสผ่านไม่ถูกต้อง")
     return {"token": create_access_token(user), "user": user}


@router.post(
     "/init-admin",
     response_model=UserResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create the first admin"
)
def init_admin(body: RegisterRequest, db: Session = Depends(get_session)):
     """
     Open bootstrap endpoint. Only works while no admin exists.
     """
     if db.query(User.id).filter(User.role == UserRole.ADMIN).first():
          raise ValidationError("มีผู้ดูแลระบบอยู่แล้ว")
     return create_user(db, body, UserRole.ADMIN)


@router.get("/auth/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
     return user
