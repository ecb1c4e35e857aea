"""
MongoDB connection handle.

`db` stays None when DATABASE_URL or DATABASE_NAME is not configured, so the
app can boot (and report itself disconnected) without a database.
"""

import logging

from pymongo import ASCENDING, DESCENDING, MongoClient

import config

logger = logging.getLogger(__name__)

client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]
else:
    logger.warning("DATABASE_URL/DATABASE_NAME not set; running without a database")


def ensure_indexes(database) -> None:
    # One edge per ordered (subscriber, channel) pair
    database["subscription"].create_index(
        [("subscriber_id", ASCENDING), ("channel_id", ASCENDING)], unique=True
    )
    database["subscription"].create_index("channel_id")
    database["video"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database["like"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database["view"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database["view"].create_index("video_id")
    database["user"].create_index("email")
    database["user"].create_index("username")
