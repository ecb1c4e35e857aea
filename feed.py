from typing import List, Optional

import config
from engagement import CHANNEL_CARD, FULL_CARD, EngagementAggregator
from errors import InvalidOperation
from repository import Repository
from views import ViewCounter


class FeedComposer:
    """Subscription feed, channel recommendations and user search."""

    def __init__(self, repo: Repository, aggregator: EngagementAggregator, view_counter: ViewCounter):
        self.repo = repo
        self.aggregator = aggregator
        self.view_counter = view_counter

    def get_feed(self, viewer_id: str) -> List[dict]:
        channel_ids = self.aggregator.graph.subscribed_to_ids(viewer_id)
        if not channel_ids:
            return []
        videos = self.repo.find_videos_by_owners(channel_ids)
        if not videos:
            return []
        return self.view_counter.enrich(videos)

    def recommended_channels(self, viewer_id: str, limit: Optional[int] = None) -> List[dict]:
        # Storage order sample, no ranking
        limit = limit or config.RECOMMENDED_CHANNELS_LIMIT
        channels = self.repo.find_users_excluding(viewer_id, limit)
        return self.aggregator.decorate_many(channels, viewer_id, CHANNEL_CARD)

    def search_users(self, query: Optional[str], viewer_id: Optional[str]) -> List[dict]:
        if not query:
            raise InvalidOperation("Please enter a search query")
        users = self.repo.search_users(query)
        return self.aggregator.decorate_many(users, viewer_id, FULL_CARD)
