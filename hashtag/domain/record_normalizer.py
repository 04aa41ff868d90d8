import logging
import math
from datetime import datetime
from typing import Any, Mapping, Optional

from hashtag.domain.video_record import VideoCategory, VideoRecord, build_watch_url

logger = logging.getLogger(__name__)

UNKNOWN_CHANNEL_TITLE = "不明"
UNTITLED = "タイトルなし"


def extract_video_id(item: Mapping[str, Any]) -> str:
    """search/videos 응답의 id 필드(문자열 또는 {"videoId": ...})를 문자열로 통일한다."""
    raw_id = item.get("id")
    if isinstance(raw_id, str):
        return raw_id.strip()
    if isinstance(raw_id, Mapping):
        return str(raw_id.get("videoId") or "").strip()
    return ""


def parse_count(value: Any) -> int:
    """문자열로 내려오는 카운트를 정수로 변환한다. 숫자가 아니거나 없으면 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return max(int(value), 0)
    try:
        return max(int(str(value).strip()), 0)
    except ValueError:
        return 0


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def classify_category(title: Optional[str], description: Optional[str]) -> VideoCategory:
    # 휴리스틱: 제목/설명에 "#shorts" 또는 (대소문자 무시) "shorts" 가 있으면 쇼츠로 본다.
    title = title or ""
    description = description or ""
    if "#shorts" in title or "#shorts" in description:
        return VideoCategory.SHORT
    if "shorts" in title.lower() or "shorts" in description.lower():
        return VideoCategory.SHORT
    return VideoCategory.REGULAR


def normalize_video(
    raw_video: Mapping[str, Any],
    channels: Mapping[str, Mapping[str, Any]],
    hashtag: str,
    fetched_at: datetime,
) -> Optional[VideoRecord]:
    """
    videos.list 원본 item 을 VideoRecord 로 변환한다.
    id / snippet / publishedAt 이 없으면 경고 로그를 남기고 None 을 반환한다.
    """
    video_id = extract_video_id(raw_video)
    if not video_id:
        logger.warning(f"[NORMALIZE] skip video without id | hashtag={hashtag}")
        return None

    snippet = raw_video.get("snippet")
    if not snippet:
        logger.warning(f"[NORMALIZE] skip video without snippet | video_id={video_id}")
        return None

    published_at = parse_timestamp(snippet.get("publishedAt"))
    if published_at is None:
        logger.warning(f"[NORMALIZE] skip video without published date | video_id={video_id}")
        return None

    channel = channels.get(snippet.get("channelId") or "") or {}
    channel_snippet = channel.get("snippet") or {}
    channel_stats = channel.get("statistics") or {}
    stats = raw_video.get("statistics") or {}

    title = snippet.get("title") or UNTITLED
    description = snippet.get("description") or ""

    return VideoRecord(
        fetched_at=fetched_at,
        hashtag=hashtag,
        video_id=video_id,
        category=classify_category(snippet.get("title"), snippet.get("description")),
        title=title,
        url=build_watch_url(video_id),
        channel_title=channel_snippet.get("title") or UNKNOWN_CHANNEL_TITLE,
        subscriber_count=parse_count(channel_stats.get("subscriberCount")),
        published_at=published_at,
        description=description,
        view_count=parse_count(stats.get("viewCount")),
        like_count=parse_count(stats.get("likeCount")),
        comment_count=parse_count(stats.get("commentCount")),
    )
