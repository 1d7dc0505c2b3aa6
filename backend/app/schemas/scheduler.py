"""Pydantic schemas for scheduler control."""

from pydantic import BaseModel
from typing import Any, Dict


class JobStatus(BaseModel):
    scheduled: bool
    running: bool


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    jobs: Dict[str, JobStatus]


class SchedulerActionResponse(BaseModel):
    message: str
    is_running: bool


class JobTriggerResponse(BaseModel):
    message: str
    job: str
    result: Dict[str, Any]
