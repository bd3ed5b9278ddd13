# models/__init__.py

from .permissions import Permission
from .roles import Role
from .users import User
from .approval import ApprovalWorkflow
from .log import Log

__all__ = [
    "Permission",
    "Role",
    "User",
    "ApprovalWorkflow",
    "Log"
]
