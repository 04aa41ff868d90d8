import logging
from datetime import datetime
from typing import Iterable, List

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

from config.settings import TrackerSettings, YouTubeSettings
from hashtag.application.port.video_search_port import VideoSearchPort
from hashtag.domain.day_window import to_rfc3339
from hashtag.domain.record_normalizer import extract_video_id
from hashtag.domain.tag_fetch_result import TagFetchResult

logger = logging.getLogger(__name__)

# videos.list / channels.list 의 id 파라미터는 최대 50개까지 받는다.
ID_BATCH_SIZE = 50


class YouTubeQueryError(RuntimeError):
    pass


class YouTubeClient(VideoSearchPort):
    platform = "youtube"

    def __init__(self, settings: YouTubeSettings, tracker: TrackerSettings, service=None):
        self.settings = settings
        self.tracker = tracker
        self.service = service or build(
            "youtube",
            "v3",
            developerKey=settings.api_key,
            cache_discovery=False,
        )

    def fetch_videos_for_tag(self, hashtag: str, published_after: datetime) -> TagFetchResult:
        """
        해시태그 검색 -> 영상 통계 -> 채널 정보 순으로 조회한다.
        API 호출이 실패하면 로그를 남기고 해당 해시태그는 빈 결과로 돌려준다.
        """
        try:
            video_ids = self._search_video_ids(hashtag, published_after)
            if not video_ids:
                logger.info(f"[YOUTUBE] no videos found | hashtag={hashtag}")
                return TagFetchResult(hashtag=hashtag)

            videos = self._list_videos(video_ids)
            channel_ids: list[str] = []
            for item in videos:
                channel_id = (item.get("snippet") or {}).get("channelId")
                if channel_id and channel_id not in channel_ids:
                    channel_ids.append(channel_id)
            channels = self._list_channels(channel_ids)
        except YouTubeQueryError as exc:
            logger.exception(f"[YOUTUBE] fetch failed | hashtag={hashtag}")
            return TagFetchResult(hashtag=hashtag, error=str(exc))

        logger.info(
            f"[YOUTUBE] fetched | hashtag={hashtag}, videos={len(videos)}, channels={len(channels)}"
        )
        return TagFetchResult(hashtag=hashtag, videos=videos, channels=channels)

    def _search_video_ids(self, hashtag: str, published_after: datetime) -> List[str]:
        # 페이지 상한(기본 10 x 50 = 500건)까지만 nextPageToken 을 따라간다.
        ids: List[str] = []
        page_token = None
        for _ in range(self.tracker.max_search_pages):
            params = {
                "part": "id",
                "q": hashtag,
                "type": "video",
                "order": "date",
                "maxResults": self.tracker.search_page_size,
                "publishedAfter": to_rfc3339(published_after),
            }
            if page_token:
                params["pageToken"] = page_token
            if self.settings.quota_user:
                params["quotaUser"] = self.settings.quota_user

            response = self._execute(self.service.search().list(**params), "search")
            items = response.get("items", [])
            if not items:
                break
            for item in items:
                video_id = extract_video_id(item)
                if video_id and video_id not in ids:
                    ids.append(video_id)

            page_token = response.get("nextPageToken")
            if not page_token:
                break
        return ids

    def _list_videos(self, video_ids: List[str]) -> list[dict]:
        videos: list[dict] = []
        for batch in self._batches(video_ids):
            response = self._execute(
                self.service.videos().list(part="snippet,statistics", id=",".join(batch)),
                "videos",
            )
            videos.extend(response.get("items", []))
        return videos

    def _list_channels(self, channel_ids: List[str]) -> dict[str, dict]:
        channels: dict[str, dict] = {}
        for batch in self._batches(channel_ids):
            response = self._execute(
                self.service.channels().list(part="snippet,statistics", id=",".join(batch)),
                "channels",
            )
            for item in response.get("items", []):
                if item.get("id") and item.get("snippet"):
                    channels[item["id"]] = item
        return channels

    @staticmethod
    def _batches(ids: List[str]) -> Iterable[List[str]]:
        for start in range(0, len(ids), ID_BATCH_SIZE):
            yield ids[start : start + ID_BATCH_SIZE]

    @staticmethod
    def _execute(request, what: str) -> dict:
        try:
            return request.execute()
        except HttpError as exc:
            raise YouTubeQueryError(f"YouTube {what} failed: {exc}") from exc
        except (HttpLib2Error, OSError) as exc:
            raise YouTubeQueryError(f"YouTube {what} transport error: {exc}") from exc
