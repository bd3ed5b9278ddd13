from bson import ObjectId
from bson.errors import InvalidId

from models.permissions import Permission
from utils.db import mongo
from utils.security import utcnow

ROLE_NAMES = ("admin", "teacher", "student", "parent", "staff", "principal")


class AllPermissions:
    """Sentinel permission set of a super-role: contains every name."""

    def __contains__(self, name):
        return True

    def __repr__(self):
        return "<AllPermissions>"


ALL_PERMISSIONS = AllPermissions()


class Role:

    @staticmethod
    def collection():
        return mongo.db.roles

    def __init__(self, name, description, permissions=None, level=1,
                 is_super_role=False, is_active=True, created_at=None):
        if name not in ROLE_NAMES:
            raise ValueError(f"Unknown role name: {name}")
        self.name = name
        self.description = description
        self.permissions = permissions or []    # list of Permission ObjectIds
        self.level = level                      # informational only
        self.is_super_role = is_super_role      # bypasses permission checks
        self.is_active = is_active
        self.created_at = created_at or utcnow()

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
            "permissions": self.permissions,
            "level": self.level,
            "is_super_role": self.is_super_role,
            "is_active": self.is_active,
            "created_at": self.created_at
        }

    @staticmethod
    def find_by_id(role_id):
        try:
            return Role.collection().find_one({"_id": ObjectId(role_id)})
        except (InvalidId, TypeError):
            return None

    @staticmethod
    def find_by_name(name):
        return Role.collection().find_one({"name": name})

    # Permission names granted by a role document, or ALL_PERMISSIONS for the super-role
    @staticmethod
    def resolve_permissions(role):
        if role.get("is_super_role"):
            return ALL_PERMISSIONS
        return frozenset(Permission.names_for(role.get("permissions", [])))

    @staticmethod
    def serialize(doc, with_permissions=False):
        data = {
            "id": str(doc["_id"]),
            "name": doc["name"],
            "description": doc.get("description"),
            "level": doc.get("level", 1),
            "isSuperRole": bool(doc.get("is_super_role")),
            "isActive": doc.get("is_active", True)
        }
        if with_permissions:
            data["permissions"] = sorted(Permission.names_for(doc.get("permissions", [])))
        return data
