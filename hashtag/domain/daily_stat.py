from dataclasses import dataclass
from datetime import date

from hashtag.domain.video_record import VideoCategory


@dataclass
class DailyStat:
    # (일자, 해시태그, 영상 타입) 단위 집계 행
    date: date
    hashtag: str
    category: VideoCategory
    video_count: int = 0
    channel_count: int = 0
    total_views: int = 0
