"""
utils/seed.py
-----------------
Idempotent bootstrap of the permission catalog, the default roles and the
default administrator account.

Permissions and roles are upserted by name, so their ids stay stable across
runs and concurrent runs from several workers; entries no longer in the seed
lists are removed. The administrator is created only when no user with that
username exists yet.
"""

import logging

from bson import ObjectId

from models.permissions import Permission
from models.roles import Role
from models.users import APPROVED, User
from utils.db import ensure_indexes, mongo
from utils.errors import DuplicateError
from utils.security import utcnow

logger = logging.getLogger(__name__)

SEED_VERSION = 1

DEFAULT_PERMISSIONS = [
    # User Management
    ("manage_users", "Create, read, update, and delete users", "user_management"),
    ("view_users", "View user information", "user_management"),
    ("manage_roles", "Create and manage user roles", "user_management"),

    # Student Management
    ("manage_students", "Create, read, update, and delete students", "student_management"),
    ("view_students", "View student information", "student_management"),
    ("manage_admissions", "Handle student admissions", "student_management"),

    # Teacher Management
    ("manage_teachers", "Create, read, update, and delete teachers", "teacher_management"),
    ("view_teachers", "View teacher information", "teacher_management"),

    # Academic Management
    ("manage_classes", "Create and manage classes", "academic_management"),
    ("manage_subjects", "Create and manage subjects", "academic_management"),
    ("manage_timetable", "Create and manage timetables", "academic_management"),
    ("manage_grades", "Enter and manage student grades", "academic_management"),
    ("view_grades", "View student grades", "academic_management"),
    ("manage_attendance", "Mark and manage attendance", "academic_management"),
    ("view_attendance", "View attendance records", "academic_management"),

    # Financial Management
    ("manage_fees", "Manage fee structures and payments", "financial_management"),
    ("collect_fees", "Collect fee payments", "financial_management"),
    ("view_fees", "View fee information", "financial_management"),
    ("generate_reports", "Generate financial reports", "financial_management"),

    # System Management
    ("system_admin", "Full system administration access", "system_management"),
    ("backup_data", "Create and manage data backups", "system_management"),
    ("view_logs", "View system logs", "system_management"),
]

DEFAULT_ROLES = [
    {
        "name": "admin",
        "description": "System Administrator with full access",
        "level": 10,
        "is_super_role": True,
        "permissions": ["system_admin", "manage_users", "manage_roles", "manage_students",
                        "manage_teachers", "manage_classes", "manage_subjects", "manage_timetable",
                        "manage_grades", "manage_attendance", "manage_fees", "collect_fees",
                        "generate_reports", "backup_data", "view_logs"],
    },
    {
        "name": "principal",
        "description": "School Principal with administrative access",
        "level": 9,
        "permissions": ["view_users", "manage_students", "manage_teachers", "manage_classes",
                        "manage_subjects", "manage_timetable", "view_grades", "view_attendance",
                        "view_fees", "generate_reports"],
    },
    {
        "name": "teacher",
        "description": "Teacher with academic management access",
        "level": 5,
        "permissions": ["view_students", "manage_grades", "manage_attendance", "view_attendance",
                        "view_grades"],
    },
    {
        "name": "staff",
        "description": "Administrative staff with limited access",
        "level": 3,
        "permissions": ["view_students", "collect_fees", "view_fees", "manage_admissions"],
    },
    {
        "name": "student",
        "description": "Student with view-only access to own data",
        "level": 1,
        "permissions": ["view_grades", "view_attendance", "view_fees"],
    },
    {
        "name": "parent",
        "description": "Parent with view access to child data",
        "level": 2,
        "permissions": ["view_grades", "view_attendance", "view_fees"],
    },
]


def default_admin_spec(config):
    return {
        "username": config["DEFAULT_ADMIN_USERNAME"],
        "email": config["DEFAULT_ADMIN_EMAIL"],
        "password": config["DEFAULT_ADMIN_PASSWORD"],
        "first_name": "System",
        "last_name": "Administrator",
    }


def seed_permissions(permissions):
    names = []
    for name, description, category in permissions:
        doc = Permission(name, description, category).to_dict()
        created_at = doc.pop("created_at")
        Permission.collection().update_one(
            {"name": name},
            {"$set": doc, "$setOnInsert": {"created_at": created_at}},
            upsert=True
        )
        names.append(name)

    Permission.collection().delete_many({"name": {"$nin": names}})
    return {p["name"]: p["_id"] for p in Permission.collection().find({"name": {"$in": names}}, {"name": 1})}


def seed_roles(roles, permission_map):
    names = []
    for spec in roles:
        missing = [name for name in spec["permissions"] if name not in permission_map]
        if missing:
            logger.warning("Role %s references unknown permissions: %s", spec["name"], missing)
        doc = Role(
            name=spec["name"],
            description=spec["description"],
            permissions=[permission_map[name] for name in spec["permissions"] if name in permission_map],
            level=spec.get("level", 1),
            is_super_role=spec.get("is_super_role", False),
        ).to_dict()
        created_at = doc.pop("created_at")

        # update in place so users keep pointing at the same role _id
        Role.collection().update_one(
            {"name": spec["name"]},
            {"$set": doc, "$setOnInsert": {"created_at": created_at}},
            upsert=True
        )
        names.append(spec["name"])

    retired = [r["_id"] for r in Role.collection().find({"name": {"$nin": names}}, {"_id": 1})]
    if retired:
        orphaned = User.collection().count_documents({"role_id": {"$in": retired}})
        if orphaned:
            logger.warning("Removing %d roles still assigned to %d users", len(retired), orphaned)
        Role.collection().delete_many({"_id": {"$in": retired}})

    return {r["name"]: r["_id"] for r in Role.collection().find({"name": {"$in": names}}, {"name": 1})}


def ensure_admin(admin_spec, admin_role_id):
    if User.collection().find_one({"username": admin_spec["username"]}, {"_id": 1}):
        return False

    # self-approved so the approval invariants hold for the first account
    admin_id = ObjectId()
    now = utcnow()
    try:
        User(
            _id=admin_id,
            role_id=admin_role_id,
            user_type="admin",
            approval_status=APPROVED,
            is_active=True,
            approved_by=admin_id,
            approved_at=now,
            created_at=now,
            **admin_spec
        ).save()
    except DuplicateError:
        logger.warning("Default admin email %r is taken by another account", admin_spec["email"])
        return False
    return True


def bootstrap(admin_spec, permissions=None, roles=None):
    permissions = permissions if permissions is not None else DEFAULT_PERMISSIONS
    roles = roles if roles is not None else DEFAULT_ROLES

    ensure_indexes()
    permission_map = seed_permissions(permissions)
    role_ids = seed_roles(roles, permission_map)

    super_roles = [spec["name"] for spec in roles if spec.get("is_super_role")]
    admin_created = False
    if super_roles:
        admin_created = ensure_admin(admin_spec, role_ids[super_roles[0]])

    mongo.db.meta.update_one(
        {"_id": "seed"},
        {"$set": {"version": SEED_VERSION, "applied_at": utcnow()}},
        upsert=True
    )

    logger.info("Seeded %d permissions and %d roles (version %d)",
                len(permission_map), len(role_ids), SEED_VERSION)
    if admin_created:
        logger.warning("Created default admin user %r; change its password", admin_spec["username"])

    return {
        "permissions": len(permission_map),
        "roles": len(role_ids),
        "admin_created": admin_created,
    }
