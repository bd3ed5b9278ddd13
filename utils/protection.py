"""
utils/protection.py
-----------------
HTTP-level protections: a per-IP request limit shared by every API route,
CORS for the browser client and security response headers. Request bodies
are capped by MAX_CONTENT_LENGTH in config.py.
"""

from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_talisman import Talisman

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def init_protection(app):
    limiter = Limiter(
        get_remote_address,
        app=app,
        application_limits=[app.config["RATELIMIT_APPLICATION"]],
        storage_uri=app.config["RATELIMIT_STORAGE_URI"],
        headers_enabled=app.config["RATELIMIT_HEADERS_ENABLED"],
        enabled=app.config["RATELIMIT_ENABLED"]
    )

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["CLIENT_URL"]}},
        supports_credentials=True
    )

    Talisman(
        app,
        force_https=app.config["FORCE_HTTPS"],
        content_security_policy={"default-src": "'self'"}
    )
    return limiter
