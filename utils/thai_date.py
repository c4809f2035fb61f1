# utils/thai_date.py
"""Thai calendar helpers (Asia/Bangkok time, Buddhist era years)."""
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

BANGKOK_TZ = ZoneInfo("Asia/Bangkok")
BUDDHIST_ERA_OFFSET = 543

THAI_MONTHS = [
     "มกราคม",
     "กุมภาพันธ์",
     "มีนาคม",
     "เมษายน",
     "พฤษภาคม",
     "มิถุนายน",
     "กรกฎาคม",
     "สิงหาคม",
     "กันยายน",
     "ตุลาคม",
     "พฤศจิกายน",
     "ธันวาคม",
]


def bangkok_now() -> datetime:
     return datetime.now(BANGKOK_TZ)


def to_bangkok(value: datetime) -> datetime:
     """Naive datetimes are taken to already be Bangkok wall-clock time."""
     if value.tzinfo is None:
          return value.replace(tzinfo=BANGKOK_TZ)
     return value.astimezone(BANGKOK_TZ)


def to_naive_bangkok(value: datetime) -> datetime:
     """Bangkok wall-clock time without tzinfo, the form stored in the database."""
     return to_bangkok(value).replace(tzinfo=None)


def buddhist_year(year: int) -> int:
     return year + BUDDHIST_ERA_OFFSET


def thai_month_year(month: int, year: int) -> str:
     """e.g. (3, 2024) -> 'มีนาคม 2567'"""
     return f"{THAI_MONTHS[month - 1]} {buddhist_year(year)}"


def format_date(value: date) -> str:
     return value.strftime("%d/%m/%Y")


def format_baht(amount) -> str:
     """3150 -> '3,150', 3150.5 -> '3,150.50'"""
     amount = Decimal(str(amount))
     if amount == amount.to_integral_value():
          return f"{int(amount):,}"
     return f"{amount:,.2f}"
