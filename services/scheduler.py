# services/scheduler.py
"""
Recurring jobs on APScheduler.

A JobScheduler is built once per process (see main.lifespan) from a list of
ScheduledJob definitions. It owns all run state; nothing here is kept in
module globals. Scheduled fires retry with exponential backoff, while
run_job executes once in the caller's thread.
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ContextManager, Dict, List, Optional

import tenacity
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from database import get_session_context
from models.base import local_now
from utils.errors import ValidationError
from utils.logger import get_logger
from utils.thai_date import BANGKOK_TZ, to_naive_bangkok

logger = get_logger(__name__)

RETRY_ATTEMPTS = 3


@dataclass
class ScheduledJob:
     name: str
     description: str
     trigger_args: Dict[str, Any]
     action: Callable[[Session], Any]
     enabled: bool = True

     @property
     def schedule(self) -> str:
          return " ".join(f"{k}={v}" for k, v in self.trigger_args.items())


@dataclass
class JobState:
     enabled: bool = True
     running: bool = False
     last_run_at: Optional[datetime] = None
     last_success: Optional[bool] = None
     last_error: Optional[str] = None
     last_result: Any = None
     lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class JobScheduler:

     def __init__(
          self,
          jobs: List[ScheduledJob],
          session_factory: Callable[[], ContextManager[Session]] = get_session_context,
          timezone=BANGKOK_TZ,
          retry_wait: Optional[tenacity.wait.wait_base] = None,
          retry_attempts: int = RETRY_ATTEMPTS
     ):
          self.jobs = {job.name: job for job in jobs}
          self.timezone = timezone
          self._session_factory = session_factory
          self._retry_wait = retry_wait or tenacity.wait_exponential(multiplier=2, min=2, max=4)
          self._retry_attempts = retry_attempts
          self._states = {job.name: JobState(enabled=job.enabled) for job in jobs}
          self._triggers = {job.name: CronTrigger(timezone=timezone, **job.trigger_args) for job in jobs}
          self._scheduler: Optional[BackgroundScheduler] = None

     @property
     def running(self) -> bool:
          return self._scheduler is not None and self._scheduler.running

     def start(self) -> None:
          if self.running:
               logger.warning("scheduler_already_running")
               return
          self._scheduler = BackgroundScheduler(timezone=self.timezone)
          for name, job in self.jobs.items():
               self._scheduler.add_job(
                    self._run_scheduled,
                    trigger=self._triggers[name],
                    args=[name],
                    id=name,
                    name=name,
                    coalesce=True,
                    misfire_grace_time=600,
                    max_instances=1,
               )
               if not self._states[name].enabled:
                    self._scheduler.pause_job(name)
          self._scheduler.start()
          logger.info("scheduler_started", jobs=list(self.jobs))

     def shutdown(self, wait: bool = False) -> None:
          if self.running:
               self._scheduler.shutdown(wait=wait)
               logger.info("scheduler_stopped")
          self._scheduler = None

     def _get(self, name: str) -> ScheduledJob:
          job = self.jobs.get(name)
          if job is None:
               raise ValidationError(f"ไม่พบงานที่ชื่อ {name}", details={"available": list(self.jobs)})
          return job

     def _next_run_time(self, name: str) -> Optional[datetime]:
          if not self._states[name].enabled:
               return None
          if self.running:
               aps_job = self._scheduler.get_job(name)
               if aps_job is not None and aps_job.next_run_time is not None:
                    return to_naive_bangkok(aps_job.next_run_time)
          now = datetime.now(self.timezone)
          fire_time = self._triggers[name].get_next_fire_time(None, now)
          return to_naive_bangkok(fire_time) if fire_time else None

     def status(self) -> Dict[str, dict]:
          report = {}
          for name, job in self.jobs.items():
               state = self._states[name]
               report[name] = {
                    "name": name,
                    "description": job.description,
                    "schedule": job.schedule,
                    "enabled": state.enabled,
                    "running": state.running,
                    "next_run_time": self._next_run_time(name),
                    "last_run_at": state.last_run_at,
                    "last_success": state.last_success,
                    "last_error": state.last_error,
                    "last_result": state.last_result,
               }
          return report

     def set_enabled(self, name: str, enabled: bool) -> dict:
          self._get(name)
          self._states[name].enabled = enabled
          if self.running:
               if enabled:
                    self._scheduler.resume_job(name)
               else:
                    self._scheduler.pause_job(name)
          logger.info("job_toggled", job_name=name, enabled=enabled)
          return self.status()[name]

     def _execute(self, job: ScheduledJob) -> Any:
          with self._session_factory() as db:
               return job.action(db)

     def _record(self, name: str, success: bool, result: Any = None, error: Optional[str] = None) -> None:
          state = self._states[name]
          state.last_run_at = local_now()
          state.last_success = success
          state.last_result = result
          state.last_error = error

     def run_job(self, name: str) -> dict:
          """Run once now, outside the schedule. Failures are reported in the result."""
          job = self._get(name)
          state = self._states[name]
          with state.lock:
               state.running = True
               try:
                    result = self._execute(job)
                    self._record(name, True, result=result)
                    logger.info("job_completed", job_name=name, result=result, trigger="manual")
               except Exception as e:
                    self._record(name, False, error=str(e))
                    logger.exception("job_failed", job_name=name, trigger="manual")
               finally:
                    state.running = False
          return {
               "job_name": name,
               "success": state.last_success,
               "result": state.last_result,
               "error": state.last_error,
               "executed_at": state.last_run_at,
          }

     def _run_scheduled(self, name: str) -> None:
          job = self.jobs[name]
          state = self._states[name]
          if not state.enabled:
               return
          if not state.lock.acquire(blocking=False):
               logger.warning("job_still_running", job_name=name)
               return
          state.running = True
          try:
               retrying = tenacity.Retrying(
                    stop=tenacity.stop_after_attempt(self._retry_attempts),
                    wait=self._retry_wait,
                    before_sleep=lambda rs: logger.warning(
                         "job_retrying", job_name=name, attempt=rs.attempt_number, error=str(rs.outcome.exception())
                    ),
                    reraise=True,
               )
               result = retrying(self._execute, job)
               self._record(name, True, result=result)
               logger.info("job_completed", job_name=name, result=result, trigger="schedule")
          except Exception as e:
               self._record(name, False, error=str(e))
               logger.exception("job_failed", job_name=name, trigger="schedule", attempts=self._retry_attempts)
          finally:
               state.running = False
               state.lock.release()


def build_default_jobs() -> List[ScheduledJob]:
     """The production job set, all times Asia/Bangkok."""
     from services.bill_service import BillService
     from services.notification_service import (
          NotificationService,
          send_overdue_notifications,
          send_payment_reminders,
     )

     return [
          ScheduledJob(
               name="payment-reminder-5-days",
               description="แจ้งเตือนการชำระเงินล่วงหน้า 5 วัน",
               trigger_args={"hour": 9, "minute": 0},
               action=lambda db: send_payment_reminders(db, 5),
          ),
          ScheduledJob(
               name="payment-reminder-1-day",
               description="แจ้งเตือนการชำระเงินล่วงหน้า 1 วัน",
               trigger_args={"hour": 18, "minute": 0},
               action=lambda db: send_payment_reminders(db, 1),
          ),
          ScheduledJob(
               name="overdue-notifications",
               description="แจ้งเตือนบิลค้างชำระ",
               trigger_args={"hour": 10, "minute": 0},
               action=send_overdue_notifications,
          ),
          ScheduledJob(
               name="monthly-bill-generation",
               description="สร้างบิลประจำเดือน",
               trigger_args={"day": 1, "hour": 8, "minute": 0},
               action=BillService.generate_monthly_bills,
          ),
          ScheduledJob(
               name="notification-cleanup",
               description="ลบการแจ้งเตือนที่อ่านแล้วเกิน 30 วัน",
               trigger_args={"day_of_week": "sun", "hour": 1, "minute": 0},
               action=NotificationService.cleanup_old_notifications,
          ),
     ]
