import logging

import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from utils.db import init_db_connection
from utils.errors import AppError
from utils.protection import RATE_LIMIT_MESSAGE, init_protection
from utils.seed import bootstrap, default_admin_spec
from utils.security import utcnow

# Import controllers
from controllers.admin_controller import admin_bp
from controllers.auth_controller import auth_bp
from controllers.roles_controller import roles_bp

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)               # Initialize Flask app
    app.config.from_object(config_class)  # Load configuration from Config class

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    if app.config["JWT_SECRET_KEY"] == "change-me" and not app.config.get("TESTING"):
        logger.warning("JWT_SECRET_KEY is not set; tokens are signed with the default secret")

    init_db_connection(app)   # Initialize MongoDB connection
    init_protection(app)      # Rate limit, CORS, security headers

    # Register Blueprint
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(roles_bp)

    register_error_handlers(app)
    register_commands(app)

    @app.route("/api/health")
    def health():
        return jsonify({
            "status": "OK",
            "message": "School ERP access service is running",
            "timestamp": utcnow().isoformat()
        })

    if app.config["SEED_ON_STARTUP"]:
        with app.app_context():
            bootstrap(default_admin_spec(app.config))

    return app


def register_error_handlers(app):

    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error("Internal error: %s", error.message)
            return jsonify({"success": False, "message": "Internal Server Error"}), error.status_code
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if error.code == 404:
            message = "Route not found"
        elif error.code == 429:
            message = RATE_LIMIT_MESSAGE
        else:
            message = error.description
        return jsonify({"success": False, "message": message}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "message": "Internal Server Error"}), 500


def register_commands(app):

    @app.cli.command("seed")
    def seed_command():
        """Recreate permissions and roles, and the default admin if missing."""
        summary = bootstrap(default_admin_spec(app.config))
        click.echo(f"Seeded {summary['permissions']} permissions and {summary['roles']} roles.")
        if summary["admin_created"]:
            click.echo(f"Created default admin user: {app.config['DEFAULT_ADMIN_USERNAME']}")


# Run the app
if __name__ == "__main__":
    app = create_app()
    app.run(debug=False, threaded=True)
