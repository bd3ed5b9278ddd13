"""
utils/db.py
-----------------
This module initializes and manages the MongoDB connection
for the entire Flask application.
"""

import logging

from flask_pymongo import PyMongo
from pymongo import ASCENDING

logger = logging.getLogger(__name__)

# Create a global MongoDB instance
mongo = PyMongo()


def init_db_connection(app):
    """
    Initialize MongoDB connection with Flask app.
    Loads settings from config.py (MONGO_URI, which names the database).
    """
    mongo.init_app(app, tz_aware=True)

    if mongo.db is None:
        raise RuntimeError("MONGO_URI must include a database name")
    logger.info("MongoDB connection initialized (database=%s)", mongo.db.name)
    return mongo


def ensure_indexes():
    mongo.db.users.create_index([("username", ASCENDING)], unique=True)
    mongo.db.users.create_index([("email", ASCENDING)], unique=True)
    mongo.db.users.create_index([("approval_status", ASCENDING), ("created_at", ASCENDING)])
    mongo.db.roles.create_index([("name", ASCENDING)], unique=True)
    mongo.db.permissions.create_index([("name", ASCENDING)], unique=True)
