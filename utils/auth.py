from functools import wraps

from flask import g, request

from utils.authorization import authorize
from utils.errors import AuthenticationRequired, Forbidden, InternalError
from utils.sessions import SessionIssuer


def bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# This decorator makes sure that only callers with a valid session token reach the view
def login_required(view_function):
    @wraps(view_function)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            raise AuthenticationRequired()
        g.current_user = SessionIssuer.user_from_token(token)
        return view_function(*args, **kwargs)
    return decorated_function


# Runs the permission check before the view body, on top of login_required
def permission_required(permission):
    def decorator(view_function):
        @wraps(view_function)
        @login_required
        def decorated_function(*args, **kwargs):
            decision = authorize(g.current_user, permission)
            if decision.internal_error:
                raise InternalError(decision.reason)
            if not decision:
                raise Forbidden(decision.reason)
            return view_function(*args, **kwargs)
        return decorated_function
    return decorator


def current_user():
    return g.get("current_user")
