from abc import ABC, abstractmethod
from datetime import datetime

from hashtag.domain.tag_fetch_result import TagFetchResult


class VideoSearchPort(ABC):
    platform: str

    @abstractmethod
    def fetch_videos_for_tag(self, hashtag: str, published_after: datetime) -> TagFetchResult:
        raise NotImplementedError
