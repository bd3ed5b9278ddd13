from flask import Blueprint, jsonify, request

from models.roles import Role
from models.schemas import ChangePasswordRequest, LoginRequest, Registration, parse
from models.users import User
from utils.auth import current_user, login_required
from utils.sessions import SessionIssuer

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# Register (lands as pending until an admin approves it)
@auth_bp.route("/register", methods=["POST"])
def register():
    registration = parse(Registration, request.get_json(silent=True))
    user = User.register(registration)

    return jsonify({
        "success": True,
        "message": "Registration successful! Your account is pending admin approval. "
                   "You will be notified once approved.",
        "data": {
            "user": {
                "id": str(user["_id"]),
                "username": user["username"],
                "email": user["email"],
                "firstName": user["first_name"],
                "lastName": user["last_name"],
                "userType": user["user_type"],
                "approvalStatus": user["approval_status"]
            }
        }
    }), 201


# Login
@auth_bp.route("/login", methods=["POST"])
def login():
    body = parse(LoginRequest, request.get_json(silent=True))
    user, token = SessionIssuer.login(body.login, body.password)
    role = Role.find_by_id(user["role_id"])

    return jsonify({
        "success": True,
        "message": "Login successful",
        "data": {
            "user": User.serialize(user, role=role),
            "token": token
        }
    })


# Logout: tokens are stateless, the client simply drops it
@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    return jsonify({"success": True, "message": "Logged out successfully"})


# View own profile
@auth_bp.route("/me")
@login_required
def me():
    user = current_user()
    role = Role.find_by_id(user["role_id"])
    data = User.serialize(user, role=role)
    if role:
        data["permissions"] = ["*"] if role.get("is_super_role") else sorted(Role.resolve_permissions(role))

    return jsonify({"success": True, "data": {"user": data}})


@auth_bp.route("/change-password", methods=["PUT"])
@login_required
def change_password():
    body = parse(ChangePasswordRequest, request.get_json(silent=True))
    SessionIssuer.change_password(current_user()["_id"], body.current_password, body.new_password)

    return jsonify({"success": True, "message": "Password changed successfully"})
