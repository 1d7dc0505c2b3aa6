"""
Cron-style scheduler for the periodic jobs.

Four jobs run on wall-clock schedules in a fixed timezone:

- budget_alerts: notify users whose month-to-date spending crossed the
  alert threshold of their monthly budget
- weekly_reports / monthly_reports: send spending summaries
- recurring_transactions: materialize due recurring transactions

Job bodies never raise. Each one contains its own errors so a failing run
leaves every timer registered. The same bodies back the manual triggers.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from app.config import Settings, settings
from app.notifications import (
    BUDGET_ALERT,
    MONTHLY_REPORT,
    RECURRING_FAILED,
    RECURRING_PROCESSED,
    RECURRING_SUMMARY,
    WEEKLY_REPORT,
    LoggingNotifier,
    Notifier,
    send_notification,
)
from app.services import report_service
from app.services.recurring_processor import DueTransactionProcessor

logger = logging.getLogger(__name__)

BUDGET_ALERTS = "budget_alerts"
WEEKLY_REPORTS = "weekly_reports"
MONTHLY_REPORTS = "monthly_reports"
RECURRING_TRANSACTIONS = "recurring_transactions"

JOB_NAMES = (BUDGET_ALERTS, WEEKLY_REPORTS, MONTHLY_REPORTS, RECURRING_TRANSACTIONS)


@dataclass
class SchedulerConfig:
    timezone: str = "America/New_York"
    budget_alerts_cron: str = "0 9 * * *"
    weekly_reports_cron: str = "0 8 * * 0"
    monthly_reports_cron: str = "0 9 1 * *"
    recurring_transactions_cron: str = "0 6 * * *"
    budget_alert_threshold: int = 80

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "SchedulerConfig":
        return cls(
            timezone=app_settings.scheduler_timezone,
            budget_alerts_cron=app_settings.budget_alerts_cron,
            weekly_reports_cron=app_settings.weekly_reports_cron,
            monthly_reports_cron=app_settings.monthly_reports_cron,
            recurring_transactions_cron=app_settings.recurring_transactions_cron,
            budget_alert_threshold=app_settings.budget_alert_threshold,
        )

    def cron_for(self, job_name: str) -> str:
        return getattr(self, f"{job_name}_cron")


class SchedulerService:
    """Owns the timers and the job bodies they fire."""

    def __init__(
        self,
        config: SchedulerConfig,
        session_factory: Callable[[], Session],
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.config = config
        self.timezone = ZoneInfo(config.timezone)
        self.session_factory = session_factory
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock or self._local_now
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running_jobs: set = set()
        self._jobs: Dict[str, Callable[[], Awaitable[Dict[str, Any]]]] = {
            BUDGET_ALERTS: self.check_budget_alerts,
            WEEKLY_REPORTS: self.send_weekly_reports,
            MONTHLY_REPORTS: self.send_monthly_reports,
            RECURRING_TRANSACTIONS: self.process_recurring_transactions,
        }

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def _local_now(self) -> datetime:
        # Naive wall-clock time in the scheduler timezone
        return datetime.now(self.timezone).replace(tzinfo=None)

    def start(self) -> None:
        """Register all timers. Needs a running asyncio event loop."""
        if self.is_running:
            logger.info("Scheduler is already running")
            return

        logger.info("Starting scheduler")
        scheduler = AsyncIOScheduler(timezone=self.timezone)
        for name, job in self._jobs.items():
            scheduler.add_job(
                job,
                CronTrigger.from_crontab(self.config.cron_for(name), timezone=self.timezone),
                id=name,
                name=name,
                coalesce=True,
                replace_existing=True,
            )
            logger.info(f"Scheduled {name} ({self.config.cron_for(name)} {self.config.timezone})")

        scheduler.start()
        self._scheduler = scheduler

        for job in scheduler.get_jobs():
            logger.info(f"Next {job.id} run: {job.next_run_time}")

    def stop(self) -> None:
        """Cancel all timers. Job bodies already executing finish on their own."""
        if not self.is_running:
            logger.info("Scheduler is not running")
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    def get_status(self) -> Dict[str, Any]:
        jobs = {}
        for name in JOB_NAMES:
            job = self._scheduler.get_job(name) if self._scheduler else None
            jobs[name] = {
                "scheduled": job is not None and getattr(job, "next_run_time", None) is not None,
                "running": name in self._running_jobs,
            }
        return {"is_running": self.is_running, "jobs": jobs}

    async def trigger(self, job_name: str) -> Dict[str, Any]:
        """Run a job body now, independent of its schedule."""
        job_name = job_name.replace("-", "_")
        if job_name == RECURRING_TRANSACTIONS:
            return await self.test_recurring_transactions()
        if job_name not in self._jobs:
            raise KeyError(job_name)

        logger.info(f"Manual trigger: {job_name}")
        return await self._jobs[job_name]()

    @contextmanager
    def _job_session(self, job_name: str) -> Iterator[Session]:
        self._running_jobs.add(job_name)
        try:
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()
        finally:
            self._running_jobs.discard(job_name)

    async def _notify_each_user(
        self,
        job_name: str,
        preference: str,
        kind: str,
        build: Callable[[Session, Any], Optional[Dict[str, Any]]]
    ) -> Dict[str, Any]:
        summary = {"success": True, "users": 0, "sent": 0, "failed": 0}
        try:
            with self._job_session(job_name) as db:
                users = report_service.get_users_for_notification(db, preference)
                summary["users"] = len(users)
                logger.info(f"{job_name}: {len(users)} users with {preference} enabled")

                for user in users:
                    try:
                        payload = build(db, user)
                    except Exception:
                        summary["failed"] += 1
                        logger.exception(f"{job_name}: failed to build payload for {user.email}")
                        continue
                    if payload is None:
                        continue

                    result = await send_notification(self.notifier, kind, payload)
                    if result.success:
                        summary["sent"] += 1
                    else:
                        summary["failed"] += 1
        except Exception as e:
            logger.exception(f"Error in {job_name} job")
            summary.update(success=False, error=str(e))

        logger.info(f"{job_name} completed: {summary}")
        return summary

    async def check_budget_alerts(self) -> Dict[str, Any]:
        today = self.clock().date()
        return await self._notify_each_user(
            BUDGET_ALERTS,
            "budget_alerts",
            BUDGET_ALERT,
            lambda db, user: report_service.check_budget_alert(
                db, user, today, self.config.budget_alert_threshold
            ),
        )

    async def send_weekly_reports(self) -> Dict[str, Any]:
        today = self.clock().date()
        return await self._notify_each_user(
            WEEKLY_REPORTS,
            "weekly_reports",
            WEEKLY_REPORT,
            lambda db, user: report_service.build_weekly_report(db, user, today),
        )

    async def send_monthly_reports(self) -> Dict[str, Any]:
        today = self.clock().date()
        return await self._notify_each_user(
            MONTHLY_REPORTS,
            "monthly_reports",
            MONTHLY_REPORT,
            lambda db, user: report_service.build_monthly_report(db, user, today),
        )

    async def process_recurring_transactions(self) -> Dict[str, Any]:
        try:
            with self._job_session(RECURRING_TRANSACTIONS) as db:
                result = DueTransactionProcessor(db, clock=self.clock).run()
        except Exception as e:
            logger.exception("Error processing recurring transactions")
            return {"success": False, "error": str(e), "processed_count": 0}

        for processed in result.processed:
            await send_notification(self.notifier, RECURRING_PROCESSED, {
                "recurring_id": processed.recurring_id,
                "ledger_entry_id": processed.ledger_entry_id,
                "next_due_date": processed.next_due_date.isoformat(),
            })
        for failed in result.failed:
            await send_notification(self.notifier, RECURRING_FAILED, {
                "recurring_id": failed.recurring_id,
                "error": failed.error,
            })

        return {"success": True, **result.to_dict()}

    async def test_recurring_transactions(self) -> Dict[str, Any]:
        """Process due transactions now and send a summary notification."""
        logger.info("Manual trigger: recurring_transactions")
        summary = await self.process_recurring_transactions()
        await send_notification(self.notifier, RECURRING_SUMMARY, {
            "success": summary["success"],
            "processed_count": summary.get("processed_count", 0),
            "error": summary.get("error"),
            "run_at": self.clock().isoformat(),
        })
        return summary


def create_scheduler(
    config: Optional[SchedulerConfig] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    notifier: Optional[Notifier] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> SchedulerService:
    """Build a scheduler wired to the application settings and database."""
    if session_factory is None:
        from app.database import SessionLocal
        session_factory = SessionLocal

    return SchedulerService(
        config or SchedulerConfig.from_settings(settings),
        session_factory,
        notifier=notifier,
        clock=clock,
    )
