# services/maintenance_service.py
"""
Maintenance Service - repair requests against rooms.

Tenants report problems for the room they live in and only ever see their
own requests. Admins triage in batches (status, priority, schedule, cost)
and get analytics across every request.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from models import MaintenanceRequest, MaintenanceStatus, MaintenancePriority, MaintenanceCategory, Room, User
from models.base import local_now
from models.maintenance import OPEN_STATUSES
from utils.errors import AuthorizationError, NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

# Only admins schedule and assign work
ADMIN_ONLY_FIELDS = ("scheduled_date", "assigned_to")

TREND_MONTHS = 12
TOP_LIMIT = 10


def _start_of(day: date) -> datetime:
     return datetime.combine(day, datetime.min.time())


def _money(value) -> Decimal:
     return Decimal(str(value or 0)).quantize(Decimal("0.01"))


def _group(requests: Iterable[MaintenanceRequest], key) -> dict:
     groups = defaultdict(lambda: {"count": 0, "completed": 0, "costs": []})
     for request in requests:
          bucket = groups[key(request)]
          bucket["count"] += 1
          if request.status == MaintenanceStatus.COMPLETED:
               bucket["completed"] += 1
          if request.cost is not None:
               bucket["costs"].append(Decimal(str(request.cost)))
     return groups


def _cost_summary(costs: List[Decimal]) -> dict:
     total = sum(costs, Decimal("0"))
     return {
          "total_cost": _money(total),
          "avg_cost": _money(total / len(costs)) if costs else None,
     }


class MaintenanceService:

     @staticmethod
     def create_request(db: Session, user: User, data: dict) -> MaintenanceRequest:
          """
          File a repair request.

          Raises:
               NotFoundError: Room doesn't exist
               AuthorizationError: Tenant filing for a room that isn't theirs
          """
          room = db.query(Room).filter(Room.id == data["room_id"]).first()
          if not room:
               raise NotFoundError("ไม่พบห้อง")

          if user.is_admin:
               tenant_id = room.tenant_id
          else:
               if user.room_id != room.id:
                    raise AuthorizationError("สามารถแจ้งซ่อมได้เฉพาะห้องของตนเอง")
               tenant_id = user.id
               data = {k: v for k, v in data.items() if k not in ADMIN_ONLY_FIELDS}

          request = MaintenanceRequest(
               **data,
               tenant_id=tenant_id,
               created_by=user.id,
               status=MaintenanceStatus.PENDING,
               reported_at=local_now(),
          )
          db.add(request)
          db.flush()

          logger.info(
               "maintenance_reported",
               request_id=request.id,
               room_id=room.id,
               category=request.category.value,
               priority=request.priority.value,
               created_by=user.id,
          )
          return request

     @staticmethod
     def get_request(db: Session, request_id: int, user: User) -> MaintenanceRequest:
          request = db.query(MaintenanceRequest).filter(MaintenanceRequest.id == request_id).first()
          if not request:
               raise NotFoundError("ไม่พบรายการแจ้งซ่อม")
          if not user.is_admin and request.tenant_id != user.id:
               raise AuthorizationError()
          return request

     @staticmethod
     def list_requests(
          db: Session,
          user: User,
          status: Optional[MaintenanceStatus] = None,
          priority: Optional[MaintenancePriority] = None,
          category: Optional[MaintenanceCategory] = None,
          room_id: Optional[int] = None,
          tenant_id: Optional[int] = None,
          from_date: Optional[date] = None,
          to_date: Optional[date] = None,
          page: int = 1,
          page_size: int = 50
     ) -> Tuple[List[MaintenanceRequest], int]:
          """Newest first. ``to_date`` is inclusive of the whole day."""
          query = db.query(MaintenanceRequest)
          if not user.is_admin:
               query = query.filter(MaintenanceRequest.tenant_id == user.id)
          elif tenant_id:
               query = query.filter(MaintenanceRequest.tenant_id == tenant_id)
          if status:
               query = query.filter(MaintenanceRequest.status == status)
          if priority:
               query = query.filter(MaintenanceRequest.priority == priority)
          if category:
               query = query.filter(MaintenanceRequest.category == category)
          if room_id:
               query = query.filter(MaintenanceRequest.room_id == room_id)
          if from_date:
               query = query.filter(MaintenanceRequest.reported_at >= _start_of(from_date))
          if to_date:
               query = query.filter(MaintenanceRequest.reported_at < _start_of(to_date) + timedelta(days=1))

          total = query.count()
          requests = (
               query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())
               .offset((page - 1) * page_size)
               .limit(page_size)
               .all()
          )
          return requests, total

     @staticmethod
     def bulk_update(db: Session, ids: List[int], updates: dict) -> int:
          """
          Apply the same changes to every listed request.

          Moving a request to completed stamps ``completed_at`` unless one is
          given. Unknown ids are ignored; the return value is how many matched.
          """
          if not updates:
               raise ValidationError("กรุณาระบุข้อมูลที่ต้องการอัปเดต")

          requests = db.query(MaintenanceRequest).filter(MaintenanceRequest.id.in_(ids)).all()
          now = local_now()
          for request in requests:
               for field, value in updates.items():
                    setattr(request, field, value)
               if request.status == MaintenanceStatus.COMPLETED and request.completed_at is None:
                    request.completed_at = now
          db.flush()

          logger.info("maintenance_updated", count=len(requests), fields=sorted(updates))
          return len(requests)

     @staticmethod
     def bulk_delete(db: Session, ids: List[int]) -> int:
          deleted = (
               db.query(MaintenanceRequest)
               .filter(MaintenanceRequest.id.in_(ids))
               .delete(synchronize_session="fetch")
          )
          logger.info("maintenance_deleted", count=deleted)
          return deleted

     @staticmethod
     def get_analytics(db: Session) -> dict:
          """
          Workload, cost and turnaround figures across all requests.

          Months in ``monthly_trends`` are reporting months, newest first,
          limited to the last twelve that have requests.
          """
          requests = db.query(MaintenanceRequest).all()

          status_counts = {s: 0 for s in MaintenanceStatus}
          costs = []
          for request in requests:
               status_counts[request.status] += 1
               if request.cost is not None:
                    costs.append(Decimal(str(request.cost)))
          overall = {
               "total": len(requests),
               "pending": status_counts[MaintenanceStatus.PENDING],
               "in_progress": status_counts[MaintenanceStatus.IN_PROGRESS],
               "completed": status_counts[MaintenanceStatus.COMPLETED],
               "cancelled": status_counts[MaintenanceStatus.CANCELLED],
               **_cost_summary(costs),
          }

          def grouped(key):
               groups = _group(requests, key)
               rows = [
                    {"key": name, "count": g["count"], "completed": g["completed"], **_cost_summary(g["costs"])}
                    for name, g in groups.items()
               ]
               return sorted(rows, key=lambda row: (-row["count"], row["key"]))

          by_month = _group(requests, lambda r: (r.reported_at.year, r.reported_at.month))
          monthly_trends = [
               {
                    "year": year,
                    "month": month,
                    "count": by_month[(year, month)]["count"],
                    "completed": by_month[(year, month)]["completed"],
                    "total_cost": _cost_summary(by_month[(year, month)]["costs"])["total_cost"],
               }
               for year, month in sorted(by_month, reverse=True)[:TREND_MONTHS]
          ]

          days = [
               (r.completed_at - r.reported_at).total_seconds() / 86400
               for r in requests
               if r.status == MaintenanceStatus.COMPLETED and r.completed_at
          ]
          completion_time = {
               "avg_days": round(sum(days) / len(days), 2) if days else None,
               "min_days": round(min(days), 2) if days else None,
               "max_days": round(max(days), 2) if days else None,
          }

          by_room = _group(requests, lambda r: r.room_id)
          room_numbers = dict(db.query(Room.id, Room.room_number).filter(Room.id.in_(list(by_room))).all())
          top_rooms = sorted(
               (
                    {
                         "room_id": room_id,
                         "room_number": room_numbers.get(room_id, ""),
                         "count": g["count"],
                         "completed": g["completed"],
                         "total_cost": _cost_summary(g["costs"])["total_cost"],
                    }
                    for room_id, g in by_room.items()
               ),
               key=lambda row: (-row["count"], row["room_number"]),
          )[:TOP_LIMIT]

          urgent_open = sorted(
               (r for r in requests if r.priority == MaintenancePriority.URGENT and r.status in OPEN_STATUSES),
               key=lambda r: (r.reported_at, r.id),
          )[:TOP_LIMIT]

          return {
               "overall": overall,
               "by_category": grouped(lambda r: r.category.value),
               "by_priority": grouped(lambda r: r.priority.value),
               "monthly_trends": monthly_trends,
               "completion_time": completion_time,
               "top_rooms": top_rooms,
               "urgent_open": urgent_open,
          }
