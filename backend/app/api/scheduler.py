"""API endpoints for scheduler control and manual job runs."""

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_current_user, get_scheduler
from app.schemas.scheduler import (
    JobTriggerResponse,
    SchedulerActionResponse,
    SchedulerStatusResponse,
)
from app.services.scheduler_service import SchedulerService

router = APIRouter(
    prefix="/scheduler",
    tags=["scheduler"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/status", response_model=SchedulerStatusResponse)
def get_status(scheduler: SchedulerService = Depends(get_scheduler)):
    """Get whether the scheduler and each job are scheduled or running."""
    return scheduler.get_status()


@router.post("/start", response_model=SchedulerActionResponse)
async def start_scheduler(scheduler: SchedulerService = Depends(get_scheduler)):
    """Start all timers (no-op when already running)."""
    scheduler.start()
    return SchedulerActionResponse(message="Scheduler started", is_running=scheduler.is_running)


@router.post("/stop", response_model=SchedulerActionResponse)
async def stop_scheduler(scheduler: SchedulerService = Depends(get_scheduler)):
    """Stop all timers (no-op when already stopped)."""
    scheduler.stop()
    return SchedulerActionResponse(message="Scheduler stopped", is_running=scheduler.is_running)


@router.post("/test/{job_name}", response_model=JobTriggerResponse)
async def trigger_job(
    job_name: str,
    scheduler: SchedulerService = Depends(get_scheduler)
):
    """Run a job immediately, outside its schedule."""
    try:
        result = await scheduler.trigger(job_name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown job: {job_name}")
    return JobTriggerResponse(
        message=f"{job_name} completed",
        job=job_name.replace("-", "_"),
        result=result
    )
