from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

WATCH_URL_PREFIX = "https://www.youtube.com/watch?v="

# 메인/스태킹 테이블의 컬럼 순서. 저장소와 헤더 검증이 이 순서를 기준으로 한다.
VIDEO_RECORD_COLUMNS = (
    "fetched_at",
    "hashtag",
    "video_id",
    "category",
    "title",
    "url",
    "channel_title",
    "subscriber_count",
    "published_at",
    "description",
    "view_count",
    "like_count",
    "comment_count",
)


class VideoCategory(str, Enum):
    SHORT = "ショート"
    REGULAR = "通常"


def build_watch_url(video_id: str) -> str:
    return f"{WATCH_URL_PREFIX}{video_id}"


@dataclass
class VideoRecord:
    """해시태그 검색으로 수집한 영상 한 건(테이블의 한 행)."""

    fetched_at: datetime
    hashtag: str
    video_id: str
    category: VideoCategory
    title: str
    url: str
    channel_title: str
    subscriber_count: Optional[int]
    published_at: datetime
    description: str
    view_count: Optional[int]
    like_count: Optional[int]
    comment_count: Optional[int]
    row_id: Optional[int] = None
