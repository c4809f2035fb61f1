# routers/payments.py
"""
Payment slip API.

POST /payments/upload: tenant uploads a transfer slip for a bill (bill -> paid).
PUT /payments/{id}/verify: admin approves (bill -> verified) or rejects with a reason (bill -> pending).
PUT /payments/{id}/ocr: attach OCR text / QR payload extraction results.
GET /payments/{id}/slip: the stored slip image, for its uploader or an admin.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_admin
from models import PaymentStatus, User
from schemas.payment import (
     PaymentAnalyticsResponse,
     PaymentListResponse,
     PaymentOcrRequest,
     PaymentResponse,
     PaymentUploadRequest,
     PaymentVerifyRequest,
)
from services.payment_service import PaymentService
from services.verification_service import verify_payment

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
     "/upload",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Upload a payment slip"
)
def upload_slip(
     body: PaymentUploadRequest,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     - **bill_id**: Bill being paid
     - **slip_image_base64**: `data:image/<type>;base64,...`, at most 5MB
     - **ocr_data** / **qr_data**: Optional fields already extracted by the client
     """
     return PaymentService.upload_slip(
          db,
          bill_id=body.bill_id,
          slip_image_base64=body.slip_image_base64,
          user=user,
          ocr_data=body.ocr_data.model_dump() if body.ocr_data else None,
          qr_data=body.qr_data.model_dump() if body.qr_data else None,
     )


@router.get("/analytics", response_model=PaymentAnalyticsResponse, summary="Revenue and payment status counts")
def payment_analytics(
     months: int = Query(12, ge=1, le=60),
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return PaymentService.get_analytics(db, months=months)


@router.put("/{payment_id}/verify", response_model=PaymentResponse, summary="Approve or reject a payment")
def verify(
     payment_id: int,
     body: PaymentVerifyRequest,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return verify_payment(
          db,
          payment_id,
          approved=body.approved,
          verifier_id=admin.id,
          rejection_reason=body.rejection_reason,
     )


@router.put("/{payment_id}/ocr", response_model=PaymentResponse, summary="Attach slip extraction results")
def attach_ocr(
     payment_id: int,
     body: PaymentOcrRequest,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return PaymentService.attach_extraction(
          db,
          payment_id,
          user,
          ocr_text=body.ocr_text,
          qr_payload=body.qr_payload,
          ocr_data=body.ocr_data.model_dump(exclude_none=True) if body.ocr_data else None,
          qr_data=body.qr_data.model_dump(exclude_none=True) if body.qr_data else None,
     )


@router.get("", response_model=PaymentListResponse, summary="List payments")
def list_payments(
     status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
     bill_id: Optional[int] = Query(None),
     page: int = Query(1, ge=1),
     page_size: int = Query(50, ge=1, le=200),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     payments = PaymentService.list_payments(db, user, status=status_filter, bill_id=bill_id)
     start = (page - 1) * page_size
     return {
          "payments": payments[start:start + page_size],
          "total": len(payments),
          "page": page,
          "page_size": page_size,
     }


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return PaymentService.get_payment(db, payment_id, user)


@router.get("/{payment_id}/slip", summary="Download the slip image")
def get_slip(payment_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     data, content_type = PaymentService.read_slip(db, payment_id, user)
     return Response(content=data, media_type=content_type, headers={"Cache-Control": "private, max-age=31536000"})
