"""
Pydantic schemas for scheduler introspection and manual runs.
"""
from datetime import datetime
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field


class CronRunRequest(BaseModel):
     job_name: str = Field(..., min_length=1)


class CronToggleRequest(BaseModel):
     enabled: bool


class JobStatus(BaseModel):
     name: str
     description: str
     schedule: str
     enabled: bool
     running: bool
     next_run_time: Optional[datetime] = None
     last_run_at: Optional[datetime] = None
     last_success: Optional[bool] = None
     last_error: Optional[str] = None
     last_result: Optional[Any] = None


class CronStatusResponse(BaseModel):
     scheduler_running: bool
     timezone: str
     jobs: Dict[str, JobStatus]
     timestamp: datetime


class CronRunResponse(BaseModel):
     job_name: str
     success: bool
     result: Optional[Any] = None
     error: Optional[str] = None
     executed_at: datetime
