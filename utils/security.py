"""
utils/security.py
-----------------
Password hashing and session token helpers.

Passwords go through werkzeug's salted adaptive hashes; the method string in
PASSWORD_HASH_METHOD (e.g. "scrypt:32768:8:1" or "pbkdf2:sha256:600000")
carries the cost factor. Session tokens are HS256 JWTs carrying the user id.
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache

import jwt
from flask import current_app
from werkzeug.security import check_password_hash, generate_password_hash

from utils.errors import AuthenticationRequired


def utcnow():
    return datetime.now(timezone.utc)


def hash_password(password):
    return generate_password_hash(password, method=current_app.config["PASSWORD_HASH_METHOD"])


def verify_password(password_hash, password):
    # check_password_hash compares digests with hmac.compare_digest
    if not password_hash or password is None:
        return False
    return check_password_hash(password_hash, password)


@lru_cache(maxsize=8)
def _dummy_hash(method):
    return generate_password_hash("not-a-real-password", method=method)


def verify_dummy_password(password):
    """Spend the cost of a real password check for an unknown account; always False."""
    verify_password(_dummy_hash(current_app.config["PASSWORD_HASH_METHOD"]), password or "")
    return False


def issue_token(user_id, now=None):
    now = now or utcnow()
    payload = {
        "id": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=current_app.config["JWT_EXPIRES_DAYS"]),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token):
    """Return the verified payload of a session token.

    Raises AuthenticationRequired for expired, tampered or malformed tokens.
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "id"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationRequired("Token is not valid")
    return payload
