"""
utils/sessions.py
-----------------
Credential checks and session token issuing.

Unknown identifiers and wrong passwords produce the same InvalidCredentials
error. Accounts that exist but are not admitted (pending, rejected or
deactivated) get an AccessDenied that names their state, which the support
desk relies on.
"""

import logging

from models.users import APPROVED, PENDING, REJECTED, User
from utils.errors import AccessDenied, AuthenticationRequired, InvalidCredentials, ValidationError
from utils.security import decode_token, issue_token, verify_dummy_password

logger = logging.getLogger(__name__)


def access_denied_for(user):
    status = user.get("approval_status")
    if status == PENDING:
        message = "Your account is pending admin approval. Please wait for approval notification."
    elif status == REJECTED:
        reason = user.get("rejection_reason") or "Not specified"
        message = f"Your account registration was rejected. Reason: {reason}"
    elif not user.get("is_active"):
        message = "Your account has been deactivated. Please contact administrator."
    else:
        message = "Account access denied."
    return AccessDenied(message, approvalStatus=status)


def is_admitted(user):
    return bool(user.get("is_active")) and user.get("approval_status") == APPROVED


class SessionIssuer:

    @staticmethod
    def login(identifier, password):
        """Return ``(user, token)`` for valid credentials of an admitted account."""
        user = User.find_by_login(identifier)
        if user is None:
            logger.info("Failed login for unknown identifier %r", identifier)
            verify_dummy_password(password)
            raise InvalidCredentials()

        if not is_admitted(user):
            logger.info("Login refused for %s (status=%s, active=%s)",
                        user["username"], user.get("approval_status"), user.get("is_active"))
            raise access_denied_for(user)

        if not User.check_password(user, password):
            logger.info("Failed login for %s: wrong password", user["username"])
            raise InvalidCredentials()

        user["last_login"] = User.record_login(user["_id"])
        token = issue_token(user["_id"])
        logger.info("User %s logged in", user["username"])
        return user, token

    @staticmethod
    def change_password(user_id, current_password, new_password):
        user = User.find_by_id(user_id)
        if user is None:
            raise AuthenticationRequired("Token is not valid")

        if not User.check_password(user, current_password):
            raise ValidationError("Current password is incorrect")

        User.set_password(user["_id"], new_password)
        logger.info("Password changed for %s", user["username"])

    @staticmethod
    def user_from_token(token):
        """Resolve a bearer token back to an admitted user document."""
        payload = decode_token(token)
        user = User.find_by_id(payload["id"])
        if user is None:
            raise AuthenticationRequired("Token is not valid")
        if not is_admitted(user):
            raise access_denied_for(user)
        return user
