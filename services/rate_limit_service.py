"""
Import rate limiting.

A user may start a limited number of imports inside a trailing window.
The limiter only reads the import log; callers write a log entry after
a successful commit so that later checks see the attempt.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError, RateLimitExceededError

logger = structlog.get_logger(__name__)

DEFAULT_IMPORT_FILE_NAME = "reptile-import.csv"


class RateLimitService:
    """
    Import attempt counting against the import_logs table.
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        window_minutes: Optional[int] = None,
    ):
        self.db = get_supabase_client()
        self.table = "import_logs"
        self.limit = limit if limit is not None else settings.import_rate_limit
        self.window_minutes = (
            window_minutes if window_minutes is not None
            else settings.import_rate_window_minutes
        )

    def count_recent_imports(self, user_id: str, now: Optional[datetime] = None) -> int:
        """
        Count imports logged for the user inside the trailing window.

        Raises:
            DatabaseError: If the log cannot be read
        """
        since = (now or datetime.now(timezone.utc)) - timedelta(minutes=self.window_minutes)

        try:
            response = (
                self.db.table(self.table)
                .select("id", count="exact")
                .eq("user_id", user_id)
                .gte("created_at", since.isoformat())
                .execute()
            )
        except Exception as e:
            logger.error("rate_limit_lookup_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        if response.count is not None:
            return response.count
        return len(response.data or [])

    def is_allowed(self, user_id: str, now: Optional[datetime] = None) -> bool:
        """
        True when the user is under the limit.

        A failed lookup counts as blocked.
        """
        try:
            count = self.count_recent_imports(user_id, now=now)
        except DatabaseError:
            logger.warning("rate_limit_assumed_reached", user_id=user_id)
            return False

        allowed = count < self.limit
        logger.debug("rate_limit_checked", user_id=user_id, count=count, allowed=allowed)
        return allowed

    def check(self, user_id: str, now: Optional[datetime] = None) -> None:
        """
        Gate an import.

        Raises:
            RateLimitExceededError: If the user is blocked
        """
        if not self.is_allowed(user_id, now=now):
            logger.warning("rate_limit_exceeded", user_id=user_id, limit=self.limit)
            raise RateLimitExceededError(user_id, self.limit, self.window_minutes)

    def log_import(self, user_id: str, file_name: Optional[str], row_count: int) -> None:
        """
        Record a completed import.

        Raises:
            DatabaseError: If the insert fails
        """
        entry = {
            "user_id": user_id,
            "file_name": file_name or DEFAULT_IMPORT_FILE_NAME,
            "row_count": row_count,
        }

        try:
            self.db.table(self.table).insert(entry).execute()
        except Exception as e:
            logger.error("import_log_failed", user_id=user_id, error=str(e))
            raise DatabaseError("insert", str(e))

        logger.info("import_logged", user_id=user_id, row_count=row_count)


# Singleton instance
_rate_limit_service: Optional[RateLimitService] = None


def get_rate_limit_service() -> RateLimitService:
    """Get or create RateLimitService instance."""
    global _rate_limit_service
    if _rate_limit_service is None:
        _rate_limit_service = RateLimitService()
    return _rate_limit_service
