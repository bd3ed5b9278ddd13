import math

from flask import Blueprint, current_app, jsonify, request

from models.approval import ApprovalWorkflow
from models.roles import Role
from models.schemas import ApproveRequest, BulkApproveRequest, RejectRequest, parse
from models.users import APPROVAL_STATUSES, PENDING, USER_TYPES, User
from utils.auth import current_user, permission_required
from utils.errors import ValidationError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

ADMIN_PERMISSION = "manage_users"


def _serialize_users(users):
    # Resolve role names and approvers once per page instead of once per user
    role_ids = {u["role_id"] for u in users if u.get("role_id")}
    roles = {r["_id"]: r for r in Role.collection().find({"_id": {"$in": list(role_ids)}}, {"name": 1})}

    approver_ids = {u["approved_by"] for u in users if u.get("approved_by")}
    approvers = {a["_id"]: a for a in User.collection().find(
        {"_id": {"$in": list(approver_ids)}},
        {"first_name": 1, "last_name": 1, "email": 1}
    )}

    return [
        User.serialize(u, role=roles.get(u.get("role_id")), approver=approvers.get(u.get("approved_by")))
        for u in users
    ]


def _positive_int(name, default):
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a positive integer")
    if value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value


# -----------------------------
# PENDING REGISTRATIONS
# -----------------------------
@admin_bp.route("/pending-users")
@permission_required(ADMIN_PERMISSION)
def pending_users():
    users = list(User.collection().find({"approval_status": PENDING}).sort("created_at", -1))
    return jsonify({
        "success": True,
        "data": {"users": _serialize_users(users), "count": len(users)}
    })


# -----------------------------
# ALL USERS (filter + paginate)
# -----------------------------
@admin_bp.route("/users")
@permission_required(ADMIN_PERMISSION)
def list_users():
    status = request.args.get("status")
    user_type = request.args.get("userType")
    page = _positive_int("page", 1)
    limit = min(_positive_int("limit", 10), current_app.config["USERS_PAGE_LIMIT_MAX"])

    query = {}
    if status:
        if status not in APPROVAL_STATUSES:
            raise ValidationError("Invalid status filter")
        query["approval_status"] = status
    if user_type:
        if user_type not in USER_TYPES:
            raise ValidationError("Invalid userType filter")
        query["user_type"] = user_type

    users, total = User.paginate(query, page, limit)
    return jsonify({
        "success": True,
        "data": {
            "users": _serialize_users(users),
            "totalPages": math.ceil(total / limit),
            "currentPage": page,
            "total": total
        }
    })


# -----------------------------
# APPROVE / REJECT
# -----------------------------
@admin_bp.route("/approve-user/<user_id>", methods=["PUT"])
@permission_required(ADMIN_PERMISSION)
def approve_user(user_id):
    body = parse(ApproveRequest, request.get_json(silent=True))
    user = ApprovalWorkflow.approve(user_id, current_user()["_id"], notes=body.notes)

    return jsonify({
        "success": True,
        "message": "User approved successfully",
        "data": {"user": _serialize_users([user])[0]}
    })


@admin_bp.route("/reject-user/<user_id>", methods=["PUT"])
@permission_required(ADMIN_PERMISSION)
def reject_user(user_id):
    body = parse(RejectRequest, request.get_json(silent=True))
    user = ApprovalWorkflow.reject(user_id, current_user()["_id"], body.reason)

    return jsonify({
        "success": True,
        "message": "User rejected successfully",
        "data": {"user": _serialize_users([user])[0]}
    })


@admin_bp.route("/bulk-approve", methods=["PUT"])
@permission_required(ADMIN_PERMISSION)
def bulk_approve():
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not isinstance(body.get("userIds"), list) or not body["userIds"]:
        raise ValidationError("User IDs array is required")
    body = parse(BulkApproveRequest, body)

    modified = ApprovalWorkflow.bulk_approve(body.user_ids, current_user()["_id"], notes=body.notes)
    return jsonify({
        "success": True,
        "message": f"{modified} users approved successfully",
        "data": {"modifiedCount": modified}
    })


@admin_bp.route("/deactivate-user/<user_id>", methods=["PUT"])
@permission_required(ADMIN_PERMISSION)
def deactivate_user(user_id):
    user = ApprovalWorkflow.deactivate(user_id, current_user()["_id"])
    return jsonify({
        "success": True,
        "message": "User deactivated successfully",
        "data": {"user": _serialize_users([user])[0]}
    })


# -----------------------------
# DASHBOARD COUNTS
# -----------------------------
@admin_bp.route("/approval-stats")
@permission_required(ADMIN_PERMISSION)
def approval_stats():
    return jsonify({"success": True, "data": ApprovalWorkflow.stats()})
