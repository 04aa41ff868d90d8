import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from hashtag.application.port.video_search_port import VideoSearchPort
from hashtag.domain.record_normalizer import normalize_video
from hashtag.domain.video_record import VideoRecord

logger = logging.getLogger(__name__)


@dataclass
class CollectedBatch:
    hashtag: str
    records: list[VideoRecord] = field(default_factory=list)
    skipped: int = 0
    error: Optional[str] = None


class VideoCollector:
    """조회 포트 결과를 정규화해 VideoRecord 목록으로 만든다."""

    def __init__(self, client: VideoSearchPort):
        self.client = client

    def collect(self, hashtag: str, published_after: datetime, fetched_at: datetime) -> CollectedBatch:
        fetched = self.client.fetch_videos_for_tag(hashtag, published_after)
        batch = CollectedBatch(hashtag=hashtag)
        if fetched.failed:
            batch.error = fetched.error
            return batch
        for raw_video in fetched.videos:
            record = normalize_video(raw_video, fetched.channels, hashtag, fetched_at)
            if record is None:
                batch.skipped += 1
                continue
            batch.records.append(record)
        if batch.skipped:
            logger.warning(f"[COLLECT] skipped invalid videos | hashtag={hashtag}, skipped={batch.skipped}")
        return batch
