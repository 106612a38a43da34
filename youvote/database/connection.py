import logging

from pymongo import ASCENDING, MongoClient

from .. import config

logger = logging.getLogger(__name__)


class MongoConnector:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super(MongoConnector, cls).__new__(cls)
            try:
                instance.client = MongoClient(config.MONGO_URI)
                instance.db = instance.client[config.MONGO_DB]
                ensure_indexes(instance.db)
                instance.client.server_info()
                logger.info(f"Connected to MongoDB: {config.MONGO_DB}")
            except Exception as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                raise
            cls._instance = instance
        return cls._instance


def ensure_indexes(db):
    """Create the indexes the application relies on. Safe to call repeatedly."""
    db[config.USERS_COLLECTION_NAME].create_index("email", unique=True)
    db[config.CANDIDATES_COLLECTION_NAME].create_index("election")
    db[config.VOTES_COLLECTION_NAME].create_index("candidate")
    # one vote per voter per election
    db[config.VOTES_COLLECTION_NAME].create_index(
        [("election", ASCENDING), ("voter", ASCENDING)], unique=True
    )


def get_db():
    return MongoConnector().db
