import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from models.roles import Role
from utils.db import mongo
from utils.errors import DuplicateError, ValidationError
from utils.security import hash_password, utcnow, verify_password

logger = logging.getLogger(__name__)

ROLE_INFO_KEYS = ("student_info", "teacher_info", "staff_info")

# Approval states
PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
APPROVAL_STATUSES = (PENDING, APPROVED, REJECTED)

USER_TYPES = ("student", "teacher", "staff", "admin")


def to_object_id(value):
    """ObjectId for ``value``, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    if value is None:
        # ObjectId(None) would mint a fresh id
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _iso(value):
    return value.isoformat() if value else None


class User:

    @staticmethod
    def collection():
        return mongo.db.users

    def __init__(self, username, email, password, first_name, last_name, role_id, user_type,
                 profile=None, role_info=None, approval_status=PENDING, is_active=False,
                 approved_by=None, approved_at=None, _id=None, created_at=None, updated_at=None):
        if user_type not in USER_TYPES:
            raise ValueError(f"Unknown user type: {user_type}")
        self._id = _id
        self.username = username
        self.email = email.lower()
        self.password = hash_password(password)
        self.first_name = first_name
        self.last_name = last_name
        self.role_id = ObjectId(role_id)
        self.user_type = user_type

        # phone etc. plus the role-specific block ({"student_info": {...}})
        self.profile = profile or {}
        self.role_info = role_info or {}

        self.approval_status = approval_status
        self.is_active = is_active
        self.approved_by = approved_by
        self.approved_at = approved_at
        self.created_at = created_at or utcnow()
        self.updated_at = updated_at or self.created_at

    # Convert to dictionary for MongoDB
    def to_dict(self):
        data = {
            "username": self.username,
            "email": self.email,
            "password": self.password,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role_id": self.role_id,
            "user_type": self.user_type,
            "profile": self.profile,
            "approval_status": self.approval_status,
            "is_active": self.is_active,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at,
            "approval_notes": None,
            "rejection_reason": None,
            "last_login": None,
            "created_at": self.created_at,
            "updated_at": self.updated_at
        }
        data.update(self.role_info)
        if self._id is not None:
            data["_id"] = self._id
        return data

    # Save new user, unique indexes on username/email guard against races
    def save(self):
        try:
            result = self.collection().insert_one(self.to_dict())
        except DuplicateKeyError:
            raise DuplicateError()
        self._id = result.inserted_id
        return result

    # Registration always lands as pending + inactive, whatever the payload says
    @staticmethod
    def register(registration):
        role = Role.find_by_name(registration.user_type)
        if role is None:
            raise ValidationError("Invalid user type")

        if User.exists(registration.username, registration.email):
            raise DuplicateError()

        fields = registration.to_user_fields()
        role_info = {key: fields.pop(key) for key in ROLE_INFO_KEYS if key in fields}
        user = User(
            password=registration.password,
            role_id=role["_id"],
            role_info=role_info,
            approval_status=PENDING,
            is_active=False,
            **fields
        )
        user.save()
        logger.info("Registered %s user %s (pending approval)", user.user_type, user.username)
        return User.find_by_id(user._id)

    # Find user by ID
    @staticmethod
    def find_by_id(user_id):
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return User.collection().find_one({"_id": oid})

    # Username is matched as given, email case-insensitively
    @staticmethod
    def find_by_login(identifier):
        return User.collection().find_one({
            "$or": [
                {"email": identifier.strip().lower()},
                {"username": identifier.strip()}
            ]
        })

    @staticmethod
    def exists(username, email):
        return User.collection().find_one(
            {"$or": [{"email": email.lower()}, {"username": username}]},
            {"_id": 1}
        ) is not None

    @staticmethod
    def check_password(user, password):
        return verify_password(user.get("password"), password)

    # The only write that touches the stored credential
    @staticmethod
    def set_password(user_id, new_password):
        return User.collection().update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {
                "password": hash_password(new_password),
                "updated_at": utcnow()
            }}
        )

    @staticmethod
    def record_login(user_id, when=None):
        when = when or utcnow()
        User.collection().update_one({"_id": user_id}, {"$set": {"last_login": when}})
        return when

    @staticmethod
    def paginate(query, page, limit):
        total = User.collection().count_documents(query)
        cursor = (User.collection().find(query)
                  .sort("created_at", -1)
                  .skip((page - 1) * limit)
                  .limit(limit))
        return list(cursor), total

    @staticmethod
    def full_name(user):
        return f"{user.get('first_name', '')} {user.get('last_name', '')}".strip()

    # Outward representation, the password hash never leaves this method
    @staticmethod
    def serialize(user, role=None, approver=None):
        data = {
            "id": str(user["_id"]),
            "username": user["username"],
            "email": user["email"],
            "firstName": user.get("first_name"),
            "lastName": user.get("last_name"),
            "fullName": User.full_name(user),
            "userType": user.get("user_type"),
            "role": {"id": str(role["_id"]), "name": role["name"]} if role else (
                str(user["role_id"]) if user.get("role_id") else None),
            "approvalStatus": user.get("approval_status"),
            "isActive": bool(user.get("is_active")),
            "approvedBy": str(user["approved_by"]) if user.get("approved_by") else None,
            "approvedAt": _iso(user.get("approved_at")),
            "approvalNotes": user.get("approval_notes"),
            "rejectionReason": user.get("rejection_reason"),
            "lastLogin": _iso(user.get("last_login")),
            "profile": user.get("profile") or {},
            "createdAt": _iso(user.get("created_at")),
        }
        if approver:
            data["approvedBy"] = {
                "id": str(approver["_id"]),
                "firstName": approver.get("first_name"),
                "lastName": approver.get("last_name"),
                "email": approver.get("email")
            }
        for key, out in (("student_info", "studentInfo"),
                         ("teacher_info", "teacherInfo"),
                         ("staff_info", "staffInfo")):
            if user.get(key):
                data[out] = user[key]
        return data
