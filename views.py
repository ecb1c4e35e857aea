from typing import List

from repository import Repository


class ViewCounter:
    """Attaches a `views` count to video documents."""

    def __init__(self, repo: Repository):
        self.repo = repo

    def enrich(self, videos: List[dict]) -> List[dict]:
        return [{**v, "views": self.repo.count_views(v["id"])} for v in videos]
