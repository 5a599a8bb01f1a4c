"""
Caller authentication.

Resolves an `Authorization: Bearer <jwt>` header to a user id through
Supabase Auth.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of a Bearer header, or None if the header is missing/malformed."""
    if not authorization:
        return None
    if not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class AuthService:
    """
    Supabase Auth lookups.
    """

    def __init__(self):
        self.db = get_supabase_client()

    def get_user_id(self, authorization: Optional[str]) -> str:
        """
        Authenticated user id for a request.

        Raises:
            AuthenticationError: If no valid token was presented
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthenticationError()

        try:
            response = self.db.auth.get_user(token)
        except Exception as e:
            logger.warning("auth_token_rejected", error=str(e))
            raise AuthenticationError() from e

        user = getattr(response, "user", None)
        if user is None:
            logger.warning("auth_user_missing")
            raise AuthenticationError()

        return str(user.id)


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get or create AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
