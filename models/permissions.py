from utils.db import mongo
from utils.security import utcnow

CATEGORIES = (
    "user_management",
    "student_management",
    "teacher_management",
    "academic_management",
    "financial_management",
    "system_management",
)


class Permission:

    @staticmethod
    def collection():
        return mongo.db.permissions

    def __init__(self, name, description, category, is_active=True, created_at=None):
        if category not in CATEGORIES:
            raise ValueError(f"Unknown permission category: {category}")
        self.name = name
        self.description = description
        self.category = category  # descriptive only, never checked at request time
        self.is_active = is_active
        self.created_at = created_at or utcnow()

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "is_active": self.is_active,
            "created_at": self.created_at
        }

    # Map of permission _id -> name for the given ids
    @staticmethod
    def names_for(permission_ids):
        if not permission_ids:
            return set()
        cursor = Permission.collection().find({"_id": {"$in": list(permission_ids)}}, {"name": 1})
        return {p["name"] for p in cursor}

    @staticmethod
    def grouped_by_category():
        grouped = {category: [] for category in CATEGORIES}
        for p in Permission.collection().find().sort("name", 1):
            grouped.setdefault(p["category"], []).append(Permission.serialize(p))
        return grouped

    @staticmethod
    def serialize(doc):
        return {
            "id": str(doc["_id"]),
            "name": doc["name"],
            "description": doc.get("description"),
            "category": doc.get("category"),
            "isActive": doc.get("is_active", True)
        }
