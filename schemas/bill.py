"""
Pydantic schemas for Bill API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from models.bill import BillStatus


class BillCreate(BaseModel):
     """Schema for creating a bill by hand (admin)."""
     room_id: int = Field(..., gt=0, description="Room ID (must be occupied)")
     month: int = Field(..., ge=1, le=12)
     year: int = Field(..., ge=2000, le=2600)
     rent_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2, description="Defaults to the room's rent price")
     water_units: Decimal = Field(0, ge=0)
     water_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
     electricity_units: Decimal = Field(0, ge=0)
     electricity_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
     due_date: Optional[date] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "room_id": 1,
                    "month": 3,
                    "year": 2024,
                    "rent_amount": 3000.00,
                    "water_amount": 100.00,
                    "electricity_amount": 50.00,
                    "due_date": "2024-03-25"
               }
          }
     )


class BillUpdate(BaseModel):
     """Whitelisted admin edits; total is recomputed from the components."""
     rent_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     water_units: Optional[Decimal] = Field(None, ge=0)
     water_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
     electricity_units: Optional[Decimal] = Field(None, ge=0)
     electricity_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
     due_date: Optional[date] = None
     status: Optional[BillStatus] = None

     # Fields may be omitted but never cleared; every bill column is NOT NULL
     @field_validator("*")
     @classmethod
     def _not_null(cls, value):
          if value is None:
               raise ValueError("may be omitted but not null")
          return value


class BillResponse(BaseModel):
     id: int
     room_id: int
     tenant_id: int
     month: int
     year: int
     rent_amount: Decimal
     water_units: Decimal
     water_amount: Decimal
     electricity_units: Decimal
     electricity_amount: Decimal
     total_amount: Decimal
     due_date: date
     status: BillStatus
     is_overdue: bool = False
     created_at: datetime

     # Optional related data
     room_number: Optional[str] = None
     tenant_name: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class BillListResponse(BaseModel):
     bills: List[BillResponse]
     total: int
     page: int = 1
     page_size: int = 50


class BillGenerationResponse(BaseModel):
     bills_created: int
     triggered_by: str
     timestamp: datetime


class BillGenerationStats(BaseModel):
     month: int
     year: int
     bills_generated: int
     total_rooms: int
     occupied_rooms: int
     pending_bills: int
     paid_bills: int
     completion_rate: float
