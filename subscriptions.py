import logging
from typing import Optional, Set

from errors import InvalidOperation, NotFound
from repository import Repository

logger = logging.getLogger(__name__)


class SubscriptionGraph:
    """Directed subscriber -> channel edges between users."""

    def __init__(self, repo: Repository):
        self.repo = repo

    def toggle(self, viewer_id: str, target_id: str) -> bool:
        """
        Subscribe the viewer to the target, or unsubscribe if already subscribed.

        Returns the new state: True when the viewer is now subscribed.

        Raises:
            InvalidOperation: viewer and target are the same user
            NotFound: no user with target_id
        """
        if viewer_id == target_id:
            raise InvalidOperation("You cannot subscribe to your own channel!")

        if not self.repo.get_user(target_id):
            raise NotFound(f"No user found with id: {target_id}")

        # Delete-or-insert keeps each step atomic; the unique edge index
        # turns a concurrent double subscribe into a no-op.
        if self.repo.delete_subscription(viewer_id, target_id):
            logger.info("User %s unsubscribed from %s", viewer_id, target_id)
            return False

        self.repo.create_subscription(viewer_id, target_id)
        logger.info("User %s subscribed to %s", viewer_id, target_id)
        return True

    def is_subscribed(self, viewer_id: Optional[str], target_id: str) -> bool:
        if viewer_id is None:
            return False
        return self.repo.subscription_exists(viewer_id, target_id)

    def subscriber_count(self, user_id: str) -> int:
        return self.repo.count_subscribers(user_id)

    def subscribed_to_ids(self, user_id: str) -> Set[str]:
        return set(self.repo.subscribed_to_ids(user_id))
