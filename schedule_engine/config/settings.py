"""
Schedule engine configuration.

Values come from the process environment; a ``.env`` file at the repository
root is loaded first when present.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]

if (ROOT_DIR / '.env').exists():
    load_dotenv(ROOT_DIR / '.env')


def _flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Settings:
    """Engine settings, read once at import."""

    PROJECT_ROOT = ROOT_DIR

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    LOG_DIR = Path(os.getenv('SCHEDULE_LOG_DIR', str(ROOT_DIR / 'logs')))
    LOG_TO_FILE = _flag('SCHEDULE_LOG_TO_FILE')

    # ============================================================================
    # Recalculation
    # ============================================================================
    # Attempts (load + mutate + recompute + save) before a version conflict surfaces
    SCHEDULE_MAX_RETRIES = int(os.getenv('SCHEDULE_MAX_RETRIES', '3'))
    # Slack at or below this (days) counts as near-critical in reports
    NEAR_CRITICAL_THRESHOLD_DAYS = int(os.getenv('NEAR_CRITICAL_THRESHOLD_DAYS', '5'))

    # ============================================================================
    # PostgreSQL store
    # ============================================================================
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', '5432'))
    DB_NAME = os.getenv('DB_NAME', 'schedule_db')
    DB_USER = os.getenv('DB_USER', 'postgres')
    DB_PASSWORD = os.getenv('DB_PASSWORD', 'postgres')
    SCHEDULE_TABLE = os.getenv('SCHEDULE_TABLE', 'project_schedules')

    @classmethod
    def get_database_url(cls) -> str:
        """libpq URL for the schedule database."""
        return f'postgresql://{cls.DB_USER}:{cls.DB_PASSWORD}@{cls.DB_HOST}:{cls.DB_PORT}/{cls.DB_NAME}'

    @classmethod
    def validate_required_settings(cls) -> list[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems = []
        if cls.SCHEDULE_MAX_RETRIES < 1:
            problems.append('SCHEDULE_MAX_RETRIES must be at least 1')
        if cls.NEAR_CRITICAL_THRESHOLD_DAYS < 0:
            problems.append('NEAR_CRITICAL_THRESHOLD_DAYS must not be negative')
        if not cls.SCHEDULE_TABLE.replace('_', '').isalnum():
            problems.append(f'SCHEDULE_TABLE is not a plain identifier: {cls.SCHEDULE_TABLE!r}')
        return problems


settings = Settings()
