"""
Subscription allowance checks.

A user's plan caps how many reptiles they can hold. Imports are checked
against that cap before preview and again before commit.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError, SubscriptionLimitExceededError

logger = structlog.get_logger(__name__)


class SubscriptionService:
    """
    Plan lookup and reptile allowance enforcement.
    """

    def __init__(self):
        self.db = get_supabase_client()

    def find_plan(self, user_id: str) -> Optional[str]:
        """
        Plan name on the user's subscription.

        Returns:
            Plan name, or None if the user has no subscription row
        """
        try:
            response = (
                self.db.table("subscriptions")
                .select("plan")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("subscription_lookup_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not response.data:
            return None
        return response.data[0].get("plan")

    def get_reptile_limit(self, user_id: str) -> int:
        """
        Reptile allowance for the user's plan.

        Falls back to the default plan when the user has no subscription.
        A plan with no limits row allows nothing.
        """
        plan = self.find_plan(user_id) or settings.default_subscription_plan

        try:
            response = (
                self.db.table("subscription_limits")
                .select("plan, reptile_limit")
                .eq("plan", plan)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("subscription_limit_lookup_failed", plan=plan, error=str(e))
            raise DatabaseError("select", str(e))

        if not response.data:
            logger.warning("subscription_limit_missing", plan=plan)
            return 0
        return int(response.data[0]["reptile_limit"])

    def get_reptile_count(self, user_id: str) -> int:
        """Exact number of reptiles the user holds."""
        try:
            response = (
                self.db.table("reptiles")
                .select("id", count="exact")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("reptile_count_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        return response.count or 0

    def check_allowance(self, user_id: str, incoming: int) -> None:
        """
        Reject an import that would push the user over their allowance.

        Raises:
            SubscriptionLimitExceededError: If current + incoming > limit
        """
        limit = self.get_reptile_limit(user_id)
        current = self.get_reptile_count(user_id)

        if current + incoming > limit:
            logger.warning(
                "subscription_limit_exceeded",
                user_id=user_id,
                current=current,
                incoming=incoming,
                limit=limit
            )
            raise SubscriptionLimitExceededError(current, incoming, limit)

        logger.debug(
            "subscription_allowance_ok",
            user_id=user_id,
            current=current,
            incoming=incoming,
            limit=limit
        )


# Singleton instance
_subscription_service: Optional[SubscriptionService] = None


def get_subscription_service() -> SubscriptionService:
    """Get or create SubscriptionService instance."""
    global _subscription_service
    if _subscription_service is None:
        _subscription_service = SubscriptionService()
    return _subscription_service
