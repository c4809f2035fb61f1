"""
Pydantic schemas for slip upload and payment verification.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models.payment import PaymentStatus


class OcrData(BaseModel):
     amount: Optional[Decimal] = None
     fee: Optional[Decimal] = None
     date: Optional[str] = Field(None, max_length=20)
     time: Optional[str] = Field(None, max_length=20)
     from_account: Optional[str] = Field(None, max_length=50)
     to_account: Optional[str] = Field(None, max_length=50)
     reference: Optional[str] = Field(None, max_length=100)
     transaction_no: Optional[str] = Field(None, max_length=100)


class QrData(BaseModel):
     merchant_id: Optional[str] = Field(None, max_length=100)
     amount: Optional[Decimal] = None
     ref1: Optional[str] = Field(None, max_length=100)
     ref2: Optional[str] = Field(None, max_length=100)


class PaymentUploadRequest(BaseModel):
     """Request body for POST /payments/upload."""

     bill_id: int = Field(..., gt=0, description="Bill this slip pays")
     slip_image_base64: str = Field(..., min_length=1, description="data:image/...;base64,... URL")
     ocr_data: Optional[OcrData] = None
     qr_data: Optional[QrData] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "bill_id": 1,
                    "slip_image_base64": "data:image/png;base64,iVBORw0KGgo...",
                    "ocr_data": {"amount": 3150.00, "date": "10/03/2024", "time": "14:22"},
               }
          }
     )


class PaymentVerifyRequest(BaseModel):
     """Request body for PUT /payments/{id}/verify."""

     approved: bool
     rejection_reason: Optional[str] = Field(None, max_length=1000)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {"approved": False, "rejection_reason": "ยอดเงินไม่ตรง"}
          }
     )


class PaymentOcrRequest(BaseModel):
     """
     Attach extraction results to a payment. Structured fields win over
     anything parsed from the raw OCR text or QR payload.
     """

     ocr_text: Optional[str] = None
     qr_payload: Optional[str] = None
     ocr_data: Optional[OcrData] = None
     qr_data: Optional[QrData] = None

     @model_validator(mode="after")
     def _require_something(self):
          if not any([self.ocr_text, self.qr_payload, self.ocr_data, self.qr_data]):
               raise ValueError("At least one of ocr_text, qr_payload, ocr_data or qr_data is required")
          return self


class PaymentResponse(BaseModel):
     id: int
     bill_id: int
     user_id: int
     slip_image_url: str
     slip_content_type: Optional[str] = None
     slip_size: Optional[int] = None
     ocr_data: OcrData
     qr_data: QrData
     status: PaymentStatus
     is_active: bool
     verified_by: Optional[int] = None
     verified_at: Optional[datetime] = None
     rejection_reason: Optional[str] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
     payments: List[PaymentResponse]
     total: int
     page: int = 1
     page_size: int = 50


class MonthlyRevenue(BaseModel):
     year: int
     month: int
     revenue: Decimal
     count: int


class PaymentAnalyticsResponse(BaseModel):
     total_revenue: Decimal
     payment_stats: Dict[str, int]
     monthly_revenue: List[MonthlyRevenue]
