"""
Per-viewer user cards.

Every user returned by profile, search, recommendations and nested channel
lists goes through `EngagementAggregator.decorate`, parameterized by which
derived fields to compute.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import FrozenSet, List, Optional

import config
from repository import Repository
from schemas import public_user
from subscriptions import SubscriptionGraph

SUBSCRIBERS_COUNT = "subscribers_count"
VIDEOS_COUNT = "videos_count"
IS_ME = "is_me"
IS_SUBSCRIBED = "is_subscribed"

FULL_CARD: FrozenSet[str] = frozenset({SUBSCRIBERS_COUNT, VIDEOS_COUNT, IS_ME, IS_SUBSCRIBED})
# Recommendations never contain the viewer
CHANNEL_CARD: FrozenSet[str] = FULL_CARD - {IS_ME}
SUBSCRIBERS_ONLY: FrozenSet[str] = frozenset({SUBSCRIBERS_COUNT})


class EngagementAggregator:
    def __init__(self, repo: Repository, graph: SubscriptionGraph, max_workers: Optional[int] = None):
        self.repo = repo
        self.graph = graph
        self.max_workers = max_workers or config.DECORATION_WORKERS

    def decorate(self, user: dict, viewer_id: Optional[str], fields: FrozenSet[str] = FULL_CARD) -> dict:
        card = public_user(user)
        user_id = card["id"]
        if SUBSCRIBERS_COUNT in fields:
            card[SUBSCRIBERS_COUNT] = self.graph.subscriber_count(user_id)
        if VIDEOS_COUNT in fields:
            card[VIDEOS_COUNT] = self.repo.count_videos(user_id)
        if IS_ME in fields:
            card[IS_ME] = viewer_id is not None and viewer_id == user_id
        if IS_SUBSCRIBED in fields:
            card[IS_SUBSCRIBED] = self.graph.is_subscribed(viewer_id, user_id)
        return card

    def decorate_many(
        self, users: List[dict], viewer_id: Optional[str], fields: FrozenSet[str] = FULL_CARD
    ) -> List[dict]:
        """Decorate users concurrently, keeping input order. Any failure aborts the batch."""
        if not users:
            return []
        workers = min(self.max_workers, len(users))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda u: self.decorate(u, viewer_id, fields), users))
