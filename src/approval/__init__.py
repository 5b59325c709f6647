"""Cleanup override approval workflow."""

from .codes import (
    ApprovalCode,
    ApprovalCodeStore,
    get_approval_store,
    reset_approval_store,
)
from .policy import (
    OVERRIDE_REASONS,
    ApprovalRequiredError,
    InvalidApprovalCodeError,
    approval_request_blocker,
    minimum_cleanup_months,
    needs_override_approval,
    require_override_approval,
)

__all__ = [
    "ApprovalCode",
    "ApprovalCodeStore",
    "get_approval_store",
    "reset_approval_store",
    "OVERRIDE_REASONS",
    "ApprovalRequiredError",
    "InvalidApprovalCodeError",
    "approval_request_blocker",
    "minimum_cleanup_months",
    "needs_override_approval",
    "require_override_approval",
]
