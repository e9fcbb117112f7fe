"""
utils/db.py
-----------------
This module initializes and manages the MongoDB connection
for the entire Flask application.
"""

import logging
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from flask_pymongo import PyMongo

from utils.errors import ApiError

logger = logging.getLogger(__name__)

# Create a global MongoDB instance
mongo = PyMongo()


def init_db_connection(app):
    """
    Initialize MongoDB connection with Flask app.
    Settings come from app.config (MONGO_URI).
    """
    mongo.init_app(app)
    logger.info("MongoDB connection initialized for %s", app.config["MONGO_URI"].rsplit("@", 1)[-1])
    return mongo


def ensure_indexes():
    """Create the indexes declared on each model."""
    from models import User, Car, Booking

    for model in (User, Car, Booking):
        collection = model.collection()
        for keys, options in model.INDEXES:
            collection.create_index(keys, **options)
        logger.info("Indexes ensured on %s", collection.name)


def parse_object_id(value, label):
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ApiError(400, f"Invalid {label} ID format")


def utcnow():
    # Mongo stores naive UTC; keep every timestamp in that form
    return datetime.now(timezone.utc).replace(tzinfo=None)


def serialize(value):
    """Make a Mongo document (or list of them) JSON friendly."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value
