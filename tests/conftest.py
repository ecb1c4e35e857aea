import itertools
from datetime import datetime, timedelta

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import main
from engagement import EngagementAggregator
from repository import Repository
from schemas import public_user
from subscriptions import SubscriptionGraph
from views import ViewCounter

EPOCH = datetime(2024, 1, 1)


class InMemoryRepository(Repository):
    """Repository double backed by plain lists; rows are stored in insertion order."""

    def __init__(self):
        self.users = []
        self.subscriptions = []
        self.videos = []
        self.likes = []
        self.views = []
        self._clock = itertools.count()

    def _now(self):
        return EPOCH + timedelta(minutes=next(self._clock))

    # -------------------- Seeding --------------------
    def add_user(self, username, **fields):
        user = {
            "id": str(ObjectId()),
            "username": username,
            "email": f"{username.lower()}@example.com",
            "password_hash": "not-a-real-hash",
            "about": None,
            "avatar": None,
            "cover": None,
            "created_at": self._now(),
            **fields,
        }
        self.users.append(user)
        return dict(user)

    def add_video(self, owner_id, title="Video"):
        video = {"id": str(ObjectId()), "user_id": owner_id, "title": title, "created_at": self._now()}
        self.videos.append(video)
        return dict(video)

    def subscribe(self, subscriber_id, channel_id):
        self.create_subscription(subscriber_id, channel_id)

    def like(self, user_id, video_id, value=1):
        self.likes.append({"user_id": user_id, "video_id": video_id, "value": value, "created_at": self._now()})

    def view(self, user_id, video_id):
        self.views.append({"user_id": user_id, "video_id": video_id, "created_at": self._now()})

    # -------------------- Users --------------------
    def get_user(self, user_id):
        return next((dict(u) for u in self.users if u["id"] == user_id), None)

    def find_users(self, user_ids):
        ids = set(user_ids)
        return [dict(u) for u in self.users if u["id"] in ids]

    def find_users_excluding(self, user_id, limit):
        return [dict(u) for u in self.users if u["id"] != user_id][:limit]

    def search_users(self, query):
        return [dict(u) for u in self.users if query.lower() in u["username"].lower()]

    def find_user_by_email(self, email):
        return next((dict(u) for u in self.users if u["email"] == email), None)

    def find_user_by_username(self, username):
        return next((dict(u) for u in self.users if u["username"] == username), None)

    def create_user(self, doc):
        user = {**doc, "id": str(ObjectId())}
        self.users.append(user)
        return dict(user)

    def update_user(self, user_id, fields):
        for u in self.users:
            if u["id"] == user_id:
                u.update(fields)
                return dict(u)
        return None

    # -------------------- Subscriptions --------------------
    def subscription_exists(self, subscriber_id, channel_id):
        return any(
            s["subscriber_id"] == subscriber_id and s["channel_id"] == channel_id
            for s in self.subscriptions
        )

    def count_subscribers(self, channel_id):
        return sum(1 for s in self.subscriptions if s["channel_id"] == channel_id)

    def subscribed_to_ids(self, subscriber_id):
        return [s["channel_id"] for s in self.subscriptions if s["subscriber_id"] == subscriber_id]

    def create_subscription(self, subscriber_id, channel_id):
        if self.subscription_exists(subscriber_id, channel_id):
            return False
        self.subscriptions.append(
            {"subscriber_id": subscriber_id, "channel_id": channel_id, "created_at": self._now()}
        )
        return True

    def delete_subscription(self, subscriber_id, channel_id):
        before = len(self.subscriptions)
        self.subscriptions = [
            s for s in self.subscriptions
            if not (s["subscriber_id"] == subscriber_id and s["channel_id"] == channel_id)
        ]
        return len(self.subscriptions) < before

    # -------------------- Videos --------------------
    def count_videos(self, user_id):
        return sum(1 for v in self.videos if v["user_id"] == user_id)

    def find_videos_by_owner(self, user_id):
        owned = [dict(v) for v in self.videos if v["user_id"] == user_id]
        return sorted(owned, key=lambda v: v["created_at"], reverse=True)

    def find_videos_by_owners(self, user_ids):
        ids = set(user_ids)
        owned = [self._with_owner(v) for v in self.videos if v["user_id"] in ids]
        return sorted(owned, key=lambda v: v["created_at"], reverse=True)

    def find_videos_by_ids(self, video_ids):
        ids = set(video_ids)
        return [self._with_owner(v) for v in self.videos if v["id"] in ids]

    def _with_owner(self, video):
        return {**video, "user": public_user(self.get_user(video["user_id"]))}

    # -------------------- Likes & views --------------------
    def liked_video_ids(self, user_id):
        rows = [r for r in self.likes if r["user_id"] == user_id and r["value"] != -1]
        return [r["video_id"] for r in sorted(rows, key=lambda r: r["created_at"], reverse=True)]

    def viewed_video_ids(self, user_id):
        rows = [r for r in self.views if r["user_id"] == user_id]
        return [r["video_id"] for r in sorted(rows, key=lambda r: r["created_at"], reverse=True)]

    def count_views(self, video_id):
        return sum(1 for r in self.views if r["video_id"] == video_id)


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def graph(repo):
    return SubscriptionGraph(repo)


@pytest.fixture
def aggregator(repo, graph):
    return EngagementAggregator(repo, graph, max_workers=4)


@pytest.fixture
def view_counter(repo):
    return ViewCounter(repo)


@pytest.fixture
def client(repo):
    main.app.dependency_overrides[main.get_repository] = lambda: repo
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()
