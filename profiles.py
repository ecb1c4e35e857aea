import logging
from typing import Optional

from engagement import FULL_CARD, SUBSCRIBERS_ONLY, EngagementAggregator
from errors import InvalidOperation, NotFound
from repository import Repository
from schemas import public_user
from views import ViewCounter

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("username", "about", "avatar", "cover")


class ProfileComposer:
    def __init__(self, repo: Repository, aggregator: EngagementAggregator, view_counter: ViewCounter):
        self.repo = repo
        self.aggregator = aggregator
        self.view_counter = view_counter

    def get_profile(self, target_id: str, viewer_id: Optional[str]) -> dict:
        """
        Full channel page for target_id as seen by viewer_id.

        The target card carries subscribers_count, videos_count, is_me and
        is_subscribed. `channels` lists the users the target subscribes to,
        each with subscribers_count only. `videos` are the target's uploads,
        newest first, with view counts.
        """
        user = self.repo.get_user(target_id)
        if not user:
            logger.info("Profile lookup for unknown user %s", target_id)
            raise NotFound(f"No user found with id: {target_id}")

        profile = self.aggregator.decorate(user, viewer_id, FULL_CARD)

        channel_ids = self.aggregator.graph.subscribed_to_ids(user["id"])
        channels = self.repo.find_users(channel_ids) if channel_ids else []
        profile["channels"] = self.aggregator.decorate_many(channels, viewer_id, SUBSCRIBERS_ONLY)

        videos = self.repo.find_videos_by_owner(user["id"])
        profile["videos"] = self.view_counter.enrich(videos) if videos else []
        return profile

    def edit_user(self, viewer_id: str, fields: dict) -> dict:
        """Partial update of the viewer's own profile. None values are ignored; usernames stay unique."""
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        if "username" in changes:
            owner = self.repo.find_user_by_username(changes["username"])
            if owner and owner["id"] != viewer_id:
                raise InvalidOperation("Username already in use")
        if changes:
            user = self.repo.update_user(viewer_id, changes)
            logger.info("User %s updated %s", viewer_id, ", ".join(sorted(changes)))
        else:
            user = self.repo.get_user(viewer_id)
        if not user:
            raise NotFound(f"No user found with id: {viewer_id}")
        return public_user(user)
