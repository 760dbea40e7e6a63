"""Audit trail for user actions.

Audit records go to the formula_access.audit logger; routing them to a file
or an external collector is a logging configuration concern.
"""

import logging
from typing import Any

audit_logger = logging.getLogger("formula_access.audit")


def record_user_action(user_id: str, action: str, details: dict[str, Any] | None = None) -> None:
    """Record an audit event such as login, logout or password_change."""
    audit_logger.info(
        "user_action action=%s user_id=%s details=%s",
        action,
        user_id,
        details or {},
    )
