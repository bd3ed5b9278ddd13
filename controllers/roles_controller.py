from flask import Blueprint, jsonify

from models.permissions import Permission
from models.roles import Role
from utils.auth import permission_required
from utils.errors import NotFound

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


# View Roles
@roles_bp.route("")
@permission_required("manage_roles")
def view_roles():
    roles = list(Role.collection().find().sort("level", -1))
    return jsonify({
        "success": True,
        "data": {"roles": [Role.serialize(r, with_permissions=True) for r in roles]}
    })


# Permission catalog, grouped by category
@roles_bp.route("/permissions")
@permission_required("manage_roles")
def view_permissions():
    return jsonify({"success": True, "data": {"permissions": Permission.grouped_by_category()}})


@roles_bp.route("/<role_id>")
@permission_required("manage_roles")
def view_role(role_id):
    role = Role.find_by_id(role_id)
    if not role:
        raise NotFound("Role not found")
    return jsonify({"success": True, "data": {"role": Role.serialize(role, with_permissions=True)}})
