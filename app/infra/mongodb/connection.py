"""
MongoDB Connection Management

Centralized connection handling for MongoDB.
One lazily created client per process, shared by all repositories.
"""
import logging
from typing import Optional
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
import certifi

from app.config import settings

logger = logging.getLogger(__name__)

# Global connection instance
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


# (collection, keys, options)
INDEXES = [
    ("message_templates", [("template_id", ASCENDING)], {"unique": True}),
    ("message_templates", [("owner_id", ASCENDING), ("usage_count", DESCENDING)], {}),
    ("message_templates", [("owner_id", ASCENDING), ("category", ASCENDING)], {}),
    ("curated_templates", [("curated_id", ASCENDING)], {"unique": True}),
    ("refined_responses", [("response_id", ASCENDING)], {"unique": True}),
    ("refined_responses", [("owner_id", ASCENDING), ("created_at", DESCENDING)], {}),
    ("conversations", [("conversation_id", ASCENDING)], {"unique": True}),
    ("conversations", [("owner_id", ASCENDING), ("created_at", DESCENDING)], {}),
    ("template_upload_sessions", [("owner_id", ASCENDING), ("created_at", DESCENDING)], {}),
    ("template_usage_events", [("owner_id", ASCENDING), ("template_id", ASCENDING)], {}),
    ("profiles", [("user_id", ASCENDING)], {"unique": True}),
    ("profiles", [("api_key_hash", ASCENDING)], {"unique": True, "sparse": True}),
]


def connect(
    connection_string: str = None,
    db_name: str = None
) -> Database:
    """
    Establish MongoDB connection.

    TLS (with the certifi CA bundle) is enabled when MONGODB_TLS is set or
    the URI uses the mongodb+srv scheme.

    Args:
        connection_string: MongoDB URI (defaults to settings)
        db_name: Database name (defaults to settings)

    Returns:
        MongoDB Database instance

    Raises:
        ConnectionFailure: If connection fails
    """
    global _client, _database

    if _database is not None:
        return _database

    conn_str = connection_string or settings.MONGODB_URI
    database_name = db_name or settings.MONGODB_DB_NAME

    client_options = {
        "serverSelectionTimeoutMS": 10000,
        "connectTimeoutMS": 15000,
        "socketTimeoutMS": 15000,
        "retryWrites": True,
        "maxPoolSize": 50,
    }
    if settings.MONGODB_TLS or conn_str.startswith("mongodb+srv://"):
        client_options["tls"] = True
        client_options["tlsCAFile"] = certifi.where()

    try:
        _client = MongoClient(conn_str, **client_options)

        # Test connection
        _client.admin.command('ping')
        _database = _client[database_name]

        logger.info(f"Connected to MongoDB: {database_name}")
        return _database

    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        logger.error(f"Failed to connect to MongoDB: {str(e)}")
        _client = None
        raise


def get_database() -> Database:
    """
    Get the database instance, connecting if necessary.

    Returns:
        MongoDB Database instance
    """
    if _database is None:
        return connect()
    return _database


def close_database():
    """Close the database connection."""
    global _client, _database
    if _client:
        _client.close()
        _client = None
        _database = None
        logger.info("Disconnected from MongoDB")


def get_collection(collection_name: str):
    """
    Get a collection from the database.

    Args:
        collection_name: Name of the collection

    Returns:
        MongoDB Collection
    """
    db = get_database()
    return db[collection_name]


def ensure_indexes() -> int:
    """
    Create the indexes every collection relies on (idempotent).

    Returns:
        Number of index specs applied
    """
    db = get_database()
    for collection_name, keys, options in INDEXES:
        db[collection_name].create_index(keys, **options)
    logger.info(f"Ensured {len(INDEXES)} MongoDB indexes")
    return len(INDEXES)
