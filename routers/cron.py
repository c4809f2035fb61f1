# routers/cron.py
"""
Scheduler introspection and manual job runs (admin only).

The JobScheduler instance lives on app.state, created in main.lifespan.
"""
from fastapi import APIRouter, Depends, Request

from dependencies import require_admin
from models import User
from models.base import local_now
from schemas.cron import CronRunRequest, CronRunResponse, CronStatusResponse, CronToggleRequest, JobStatus
from services.scheduler import JobScheduler

router = APIRouter(prefix="/api/cron", tags=["cron"])


def get_scheduler(request: Request) -> JobScheduler:
     return request.app.state.scheduler


@router.get("/status", response_model=CronStatusResponse)
def cron_status(scheduler: JobScheduler = Depends(get_scheduler), admin: User = Depends(require_admin)):
     return {
          "scheduler_running": scheduler.running,
          "timezone": str(scheduler.timezone),
          "jobs": scheduler.status(),
          "timestamp": local_now(),
     }


@router.post("/run", response_model=CronRunResponse, summary="Run a job now")
def run_job(
     body: CronRunRequest,
     scheduler: JobScheduler = Depends(get_scheduler),
     admin: User = Depends(require_admin)
):
     """Runs once in this request; the schedule is unchanged."""
     return scheduler.run_job(body.job_name)


@router.put("/jobs/{job_name}", response_model=JobStatus, summary="Enable or disable a job")
def toggle_job(
     job_name: str,
     body: CronToggleRequest,
     scheduler: JobScheduler = Depends(get_scheduler),
     admin: User = Depends(require_admin)
):
     return scheduler.set_enabled(job_name, body.enabled)
