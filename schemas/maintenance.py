"""
Pydantic schemas for maintenance request validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from models.maintenance import MaintenanceCategory, MaintenancePriority, MaintenanceStatus


class MaintenanceCreate(BaseModel):
     """
     New repair request. Tenants file for their own room; scheduling and
     assignment fields are only honoured for admins.
     """
     room_id: int = Field(..., gt=0)
     category: MaintenanceCategory
     title: str = Field(..., max_length=200)
     description: str = Field(..., max_length=2000)
     priority: MaintenancePriority
     scheduled_date: Optional[date] = None
     assigned_to: Optional[str] = Field(None, max_length=200)
     notes: Optional[str] = Field(None, max_length=2000)
     images: Optional[List[str]] = Field(None, max_length=10)

     @field_validator("title", "description")
     @classmethod
     def _required_text(cls, value: str) -> str:
          value = value.strip()
          if not value:
               raise ValueError("must not be blank")
          return value

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "room_id": 1,
                    "category": "plumbing",
                    "title": "ก๊อกน้ำรั่ว",
                    "description": "ก๊อกน้ำในห้องน้ำรั่วตลอดเวลา",
                    "priority": "medium"
               }
          }
     )


class MaintenanceUpdate(BaseModel):
     """Fields an admin may change across a batch of requests."""
     status: Optional[MaintenanceStatus] = None
     priority: Optional[MaintenancePriority] = None
     scheduled_date: Optional[date] = None
     completed_at: Optional[datetime] = None
     cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     assigned_to: Optional[str] = Field(None, max_length=200)
     notes: Optional[str] = Field(None, max_length=2000)

     @field_validator("status", "priority")
     @classmethod
     def _not_null(cls, value):
          if value is None:
               raise ValueError("may be omitted but not null")
          return value


class MaintenanceBulkUpdate(BaseModel):
     ids: List[int] = Field(..., min_length=1)
     updates: MaintenanceUpdate


class MaintenanceResponse(BaseModel):
     id: int
     room_id: int
     tenant_id: Optional[int] = None
     created_by: int
     category: MaintenanceCategory
     title: str
     description: str
     priority: MaintenancePriority
     status: MaintenanceStatus
     reported_at: datetime
     scheduled_date: Optional[date] = None
     completed_at: Optional[datetime] = None
     cost: Optional[Decimal] = None
     assigned_to: Optional[str] = None
     notes: Optional[str] = None
     images: Optional[List[str]] = None
     created_at: datetime
     updated_at: datetime

     # Optional related data
     room_number: Optional[str] = None
     tenant_name: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class MaintenanceListResponse(BaseModel):
     requests: List[MaintenanceResponse]
     total: int
     page: int = 1
     page_size: int = 50


class MaintenanceBatchResult(BaseModel):
     count: int


class MaintenanceGroupStats(BaseModel):
     key: str
     count: int
     completed: int
     total_cost: Decimal
     avg_cost: Optional[Decimal] = None


class MaintenanceMonthStats(BaseModel):
     year: int
     month: int
     count: int
     completed: int
     total_cost: Decimal


class MaintenanceRoomStats(BaseModel):
     room_id: int
     room_number: str
     count: int
     completed: int
     total_cost: Decimal


class MaintenanceOverallStats(BaseModel):
     total: int
     pending: int
     in_progress: int
     completed: int
     cancelled: int
     total_cost: Decimal
     avg_cost: Optional[Decimal] = None


class MaintenanceAnalyticsResponse(BaseModel):
     overall: MaintenanceOverallStats
     by_category: List[MaintenanceGroupStats]
     by_priority: List[MaintenanceGroupStats]
     monthly_trends: List[MaintenanceMonthStats]
     completion_time: Dict[str, Optional[float]]
     top_rooms: List[MaintenanceRoomStats]
     urgent_open: List[MaintenanceResponse]
