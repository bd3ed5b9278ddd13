"""
utils/authorization.py
-----------------
Per-request permission check. Stateless: the caller's role and its
permission set are loaded fresh for every decision, and anything going wrong
while loading them is a deny, never an allow.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models.roles import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    internal_error: bool = False

    def __bool__(self):
        return self.allowed


ALLOW = Decision(True)


def authorize(user, required_permission):
    try:
        role = Role.find_by_id(user.get("role_id"))
        if role is None or not role.get("is_active", True):
            return Decision(False, "Access denied. No active role assigned")
        if role.get("is_super_role"):
            return ALLOW
        granted = Role.resolve_permissions(role)
    except Exception:
        logger.exception("Permission check failed for user %s", user.get("_id"))
        return Decision(False, "Error checking permissions", internal_error=True)

    if required_permission in granted:
        return ALLOW
    return Decision(False, f"Access denied. Required permission: {required_permission}")
