import os
import urllib.parse
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DEFAULT_HASHTAGS = "#安野たかひろ,#チームみらい"


def _split_hashtags(raw: str) -> list[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _compose_postgres_url() -> str:
    # DATABASE_URL 이 없으면 SQL_* 환경변수로 PostgreSQL 접속 URL 을 만든다.
    password = urllib.parse.quote_plus(os.getenv("SQL_PASSWORD", ""))
    return (
        f"postgresql+psycopg2://{os.getenv('SQL_USER','postgres')}:{password}"
        f"@{os.getenv('SQL_HOST','localhost')}:{os.getenv('SQL_PORT','5432')}/{os.getenv('SQL_DATABASE','hashtag_tracker')}"
    )


@dataclass
class YouTubeSettings:
    api_key: str = os.getenv("YOUTUBE_API_KEY", "")
    quota_user: str | None = os.getenv("YOUTUBE_QUOTA_USER")


@dataclass
class DatabaseSettings:
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL") or _compose_postgres_url())
    echo: bool = field(default_factory=lambda: os.getenv("SQL_ECHO", "false").lower() == "true")


@dataclass
class TrackerSettings:
    """
    수집 대상 해시태그와 기간/시간대 정책을 담는 설정 객체.
    유스케이스 생성 시 명시적으로 주입한다.
    """

    hashtags: list[str] = field(
        default_factory=lambda: _split_hashtags(os.getenv("TRACKER_HASHTAGS", DEFAULT_HASHTAGS))
    )
    timezone: str = field(default_factory=lambda: os.getenv("TRACKER_TIMEZONE", "Asia/Tokyo"))
    full_sync_lookback_days: int = field(
        default_factory=lambda: int(os.getenv("TRACKER_LOOKBACK_DAYS", "365"))
    )
    max_search_pages: int = field(default_factory=lambda: int(os.getenv("TRACKER_MAX_SEARCH_PAGES", "10")))
    search_page_size: int = field(default_factory=lambda: int(os.getenv("TRACKER_SEARCH_PAGE_SIZE", "50")))
    # raw: 해시태그별 신규 조회 결과로 집계, store: 중복 제거된 메인 테이블로 집계
    daily_stats_source: str = field(
        default_factory=lambda: os.getenv("TRACKER_DAILY_STATS_SOURCE", "raw").lower()
    )

    def __post_init__(self):
        # 중복 해시태그는 처음 등장한 순서대로 하나만 남긴다.
        self.hashtags = list(dict.fromkeys(tag.strip() for tag in self.hashtags if tag and tag.strip()))
        if not self.hashtags:
            raise ValueError("At least one target hashtag is required")
        # search.list 의 maxResults 상한은 50
        self.search_page_size = max(1, min(int(self.search_page_size), 50))
        self.max_search_pages = max(1, int(self.max_search_pages))
        if self.daily_stats_source not in ("raw", "store"):
            raise ValueError(f"Unsupported daily stats source: {self.daily_stats_source}")
        ZoneInfo(self.timezone)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
