"""Services module for StreakPro CLI - Business logic layer."""

from .activity_service import ActivityService
from .reconciliation_service import ReconciliationService
from .session_controller import FocusSessionController, SessionHandle
from .verification_service import VerificationService

__all__ = [
    "ActivityService",
    "ReconciliationService",
    "VerificationService",
    "FocusSessionController",
    "SessionHandle",
]
