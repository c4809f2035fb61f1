# routers/maintenance.py
"""
Maintenance request API.

Tenants report and follow their own room's repairs; admins see everything,
update or delete in batches and read the analytics.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_admin
from models import MaintenanceCategory, MaintenancePriority, MaintenanceRequest, MaintenanceStatus, User
from schemas.maintenance import (
     MaintenanceAnalyticsResponse,
     MaintenanceBatchResult,
     MaintenanceBulkUpdate,
     MaintenanceCreate,
     MaintenanceListResponse,
     MaintenanceResponse,
)
from services.maintenance_service import MaintenanceService
from utils.errors import ValidationError

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


def _to_response(request: MaintenanceRequest) -> MaintenanceResponse:
     response = MaintenanceResponse.model_validate(request)
     response.room_number = request.room.room_number if request.room else None
     response.tenant_name = request.tenant.name if request.tenant else None
     return response


def _parse_ids(raw: str) -> list:
     try:
          ids = [int(part) for part in raw.split(",") if part.strip()]
     except ValueError:
          raise ValidationError("รหัสรายการไม่ถูกต้อง")
     if not ids:
          raise ValidationError("กรุณาระบุรายการที่ต้องการลบ")
     return ids


@router.get("/analytics", response_model=MaintenanceAnalyticsResponse, summary="Maintenance analytics")
def maintenance_analytics(db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     analytics = MaintenanceService.get_analytics(db)
     analytics["urgent_open"] = [_to_response(r) for r in analytics["urgent_open"]]
     return analytics


@router.get("", response_model=MaintenanceListResponse, summary="List maintenance requests")
def list_requests(
     status_filter: Optional[MaintenanceStatus] = Query(None, alias="status"),
     priority: Optional[MaintenancePriority] = Query(None),
     category: Optional[MaintenanceCategory] = Query(None),
     room_id: Optional[int] = Query(None),
     tenant_id: Optional[int] = Query(None),
     from_date: Optional[date] = Query(None),
     to_date: Optional[date] = Query(None),
     page: int = Query(1, ge=1),
     page_size: int = Query(50, ge=1, le=200),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """Tenants only ever see their own requests."""
     requests, total = MaintenanceService.list_requests(
          db,
          user,
          status=status_filter,
          priority=priority,
          category=category,
          room_id=room_id,
          tenant_id=tenant_id,
          from_date=from_date,
          to_date=to_date,
          page=page,
          page_size=page_size,
     )
     return {
          "requests": [_to_response(r) for r in requests],
          "total": total,
          "page": page,
          "page_size": page_size,
     }


@router.post(
     "",
     response_model=MaintenanceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Report a repair"
)
def create_request(
     body: MaintenanceCreate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return _to_response(MaintenanceService.create_request(db, user, body.model_dump(exclude_none=True)))


@router.put("", response_model=MaintenanceBatchResult, summary="Update requests in bulk")
def bulk_update(body: MaintenanceBulkUpdate, db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     updates = body.updates.model_dump(exclude_unset=True)
     return {"count": MaintenanceService.bulk_update(db, body.ids, updates)}


@router.delete("", response_model=MaintenanceBatchResult, summary="Delete requests in bulk")
def bulk_delete(
     ids: str = Query(..., description="Comma-separated request ids"),
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return {"count": MaintenanceService.bulk_delete(db, _parse_ids(ids))}


@router.get("/{request_id}", response_model=MaintenanceResponse)
def get_request(request_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return _to_response(MaintenanceService.get_request(db, request_id, user))
