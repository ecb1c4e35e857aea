from typing import List

from repository import Repository
from views import ViewCounter


class SavedItemsFetcher:
    """A viewer's liked videos and watch history, most recent first."""

    def __init__(self, repo: Repository, view_counter: ViewCounter):
        self.repo = repo
        self.view_counter = view_counter

    def liked_videos(self, viewer_id: str) -> List[dict]:
        return self._resolve(self.repo.liked_video_ids(viewer_id))

    def history(self, viewer_id: str) -> List[dict]:
        return self._resolve(self.repo.viewed_video_ids(viewer_id))

    def _resolve(self, video_ids: List[str]) -> List[dict]:
        # First occurrence wins: rows arrive newest first
        ordered_ids = list(dict.fromkeys(video_ids))
        if not ordered_ids:
            return []
        by_id = {v["id"]: v for v in self.repo.find_videos_by_ids(ordered_ids)}
        videos = [by_id[i] for i in ordered_ids if i in by_id]
        if not videos:
            return []
        return self.view_counter.enrich(videos)
