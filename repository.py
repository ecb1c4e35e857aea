"""
Storage access for users, subscriptions, videos, likes and views.

Composers depend on the abstract `Repository`; `MongoRepository` is the
production implementation over a pymongo database handle. All returned
documents pass through `to_str_id`, so ids are strings and timestamps are
isoformat strings. Relation collections (subscription, video, like, view)
reference users and videos by string id.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

import database
from schemas import public_user, to_str_id


def objid(id_str: str) -> Optional[ObjectId]:
    """ObjectId for id_str, or None when it cannot name any stored document."""
    if not isinstance(id_str, str):
        return None
    try:
        return ObjectId(id_str)
    except InvalidId:
        return None


def objids(id_strs: Iterable[str]) -> List[ObjectId]:
    return [oid for oid in (objid(i) for i in id_strs) if oid is not None]


class Repository(ABC):
    # -------------------- Users --------------------
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[dict]:
        pass

    @abstractmethod
    def find_users(self, user_ids: Iterable[str]) -> List[dict]:
        pass

    @abstractmethod
    def find_users_excluding(self, user_id: str, limit: int) -> List[dict]:
        """Up to `limit` users other than `user_id`, in storage order."""

    @abstractmethod
    def search_users(self, query: str) -> List[dict]:
        """Users whose username contains `query`, ignoring case."""

    @abstractmethod
    def find_user_by_email(self, email: str) -> Optional[dict]:
        pass

    @abstractmethod
    def find_user_by_username(self, username: str) -> Optional[dict]:
        pass

    @abstractmethod
    def create_user(self, doc: dict) -> dict:
        pass

    @abstractmethod
    def update_user(self, user_id: str, fields: dict) -> Optional[dict]:
        pass

    # -------------------- Subscriptions --------------------
    @abstractmethod
    def subscription_exists(self, subscriber_id: str, channel_id: str) -> bool:
        pass

    @abstractmethod
    def count_subscribers(self, channel_id: str) -> int:
        pass

    @abstractmethod
    def subscribed_to_ids(self, subscriber_id: str) -> List[str]:
        pass

    @abstractmethod
    def create_subscription(self, subscriber_id: str, channel_id: str) -> bool:
        """Insert the edge; False if it already existed."""

    @abstractmethod
    def delete_subscription(self, subscriber_id: str, channel_id: str) -> bool:
        """Remove the edge; False if there was nothing to remove."""

    # -------------------- Videos --------------------
    @abstractmethod
    def count_videos(self, user_id: str) -> int:
        pass

    @abstractmethod
    def find_videos_by_owner(self, user_id: str) -> List[dict]:
        """Videos owned by `user_id`, newest first."""

    @abstractmethod
    def find_videos_by_owners(self, user_ids: Iterable[str]) -> List[dict]:
        """Videos owned by any of `user_ids`, newest first, each with its owner under `user`."""

    @abstractmethod
    def find_videos_by_ids(self, video_ids: Iterable[str]) -> List[dict]:
        """Videos with the given ids, each with its owner under `user`. No ordering."""

    # -------------------- Likes & views --------------------
    @abstractmethod
    def liked_video_ids(self, user_id: str) -> List[str]:
        """Video ids from the user's like rows (dislikes excluded), newest row first."""

    @abstractmethod
    def viewed_video_ids(self, user_id: str) -> List[str]:
        """Video ids from the user's view rows, newest row first. May repeat."""

    @abstractmethod
    def count_views(self, video_id: str) -> int:
        pass

    def ensure_indexes(self) -> None:
        pass


class MongoRepository(Repository):
    def __init__(self, db):
        self.db = db

    # -------------------- Users --------------------
    def get_user(self, user_id):
        oid = objid(user_id)
        if oid is None:
            return None
        return to_str_id(self.db["user"].find_one({"_id": oid}))

    def find_users(self, user_ids):
        ids = objids(user_ids)
        if not ids:
            return []
        return [to_str_id(u) for u in self.db["user"].find({"_id": {"$in": ids}})]

    def find_users_excluding(self, user_id, limit):
        oid = objid(user_id)
        query = {"_id": {"$ne": oid}} if oid is not None else {}
        cursor = self.db["user"].find(query).limit(limit)
        return [to_str_id(u) for u in cursor]

    def search_users(self, query):
        cursor = self.db["user"].find(
            {"username": {"$regex": re.escape(query), "$options": "i"}}
        )
        return [to_str_id(u) for u in cursor]

    def find_user_by_email(self, email):
        return to_str_id(self.db["user"].find_one({"email": email}))

    def find_user_by_username(self, username):
        return to_str_id(self.db["user"].find_one({"username": username}))

    def create_user(self, doc):
        doc = {**doc}
        inserted_id = self.db["user"].insert_one(doc).inserted_id
        doc["_id"] = inserted_id
        return to_str_id(doc)

    def update_user(self, user_id, fields):
        oid = objid(user_id)
        if oid is None:
            return None
        user = self.db["user"].find_one_and_update(
            {"_id": oid},
            {"$set": {**fields, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return to_str_id(user)

    # -------------------- Subscriptions --------------------
    def subscription_exists(self, subscriber_id, channel_id):
        edge = self.db["subscription"].find_one(
            {"subscriber_id": subscriber_id, "channel_id": channel_id}
        )
        return edge is not None

    def count_subscribers(self, channel_id):
        return self.db["subscription"].count_documents({"channel_id": channel_id})

    def subscribed_to_ids(self, subscriber_id):
        cursor = self.db["subscription"].find({"subscriber_id": subscriber_id})
        return [s["channel_id"] for s in cursor]

    def create_subscription(self, subscriber_id, channel_id):
        try:
            self.db["subscription"].insert_one(
                {"subscriber_id": subscriber_id, "channel_id": channel_id, "created_at": datetime.utcnow()}
            )
        except DuplicateKeyError:
            return False
        return True

    def delete_subscription(self, subscriber_id, channel_id):
        result = self.db["subscription"].delete_one(
            {"subscriber_id": subscriber_id, "channel_id": channel_id}
        )
        return result.deleted_count > 0

    # -------------------- Videos --------------------
    def count_videos(self, user_id):
        return self.db["video"].count_documents({"user_id": user_id})

    def find_videos_by_owner(self, user_id):
        cursor = self.db["video"].find({"user_id": user_id}).sort("created_at", DESCENDING)
        return [to_str_id(v) for v in cursor]

    def find_videos_by_owners(self, user_ids):
        owner_ids = list(user_ids)
        if not owner_ids:
            return []
        cursor = self.db["video"].find({"user_id": {"$in": owner_ids}}).sort("created_at", DESCENDING)
        return self._with_owners([to_str_id(v) for v in cursor])

    def find_videos_by_ids(self, video_ids):
        ids = objids(video_ids)
        if not ids:
            return []
        return self._with_owners([to_str_id(v) for v in self.db["video"].find({"_id": {"$in": ids}})])

    def _with_owners(self, videos):
        owners = {u["id"]: public_user(u) for u in self.find_users({v["user_id"] for v in videos})}
        for v in videos:
            v["user"] = owners.get(v["user_id"])
        return videos

    # -------------------- Likes & views --------------------
    def liked_video_ids(self, user_id):
        cursor = self.db["like"].find(
            {"user_id": user_id, "value": {"$ne": -1}}
        ).sort("created_at", DESCENDING)
        return [row["video_id"] for row in cursor]

    def viewed_video_ids(self, user_id):
        cursor = self.db["view"].find({"user_id": user_id}).sort("created_at", DESCENDING)
        return [row["video_id"] for row in cursor]

    def count_views(self, video_id):
        return self.db["view"].count_documents({"video_id": video_id})

    def ensure_indexes(self):
        database.ensure_indexes(self.db)
