"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Expense Tracker"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_timezone: str = "America/New_York"
    budget_alerts_cron: str = "0 9 * * *"  # Daily at 9:00 AM
    weekly_reports_cron: str = "0 8 * * 0"  # Sundays at 8:00 AM
    monthly_reports_cron: str = "0 9 1 * *"  # 1st of month at 9:00 AM
    recurring_transactions_cron: str = "0 6 * * *"  # Daily at 6:00 AM

    # Recurring transactions
    recurring_description_suffix: str = " (Recurring)"

    # Notifications
    budget_alert_threshold: int = 80  # Percent of monthly budget

    # CORS
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
