"""
Business logic services.

Each service handles one step of the reptile import pipeline.
"""

from services.row_validation_service import validate_row, validate_rows
from services.parent_resolution_service import resolve_parent_references
from services.import_preview_service import build_preview
from services.taxonomy_service import TaxonomyService, TaxonomyIndex, get_taxonomy_service
from services.import_commit_service import ImportCommitService, get_import_commit_service
from services.rate_limit_service import RateLimitService, get_rate_limit_service
from services.subscription_service import SubscriptionService, get_subscription_service
from services.auth_service import AuthService, get_auth_service

__all__ = [
    "validate_row",
    "validate_rows",
    "resolve_parent_references",
    "build_preview",
    "TaxonomyService",
    "TaxonomyIndex",
    "get_taxonomy_service",
    "ImportCommitService",
    "get_import_commit_service",
    "RateLimitService",
    "get_rate_limit_service",
    "SubscriptionService",
    "get_subscription_service",
    "AuthService",
    "get_auth_service",
]
