from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from hashtag.domain.channel_snapshot import ChannelSnapshot
from hashtag.domain.daily_stat import DailyStat
from hashtag.domain.run_report import StepResult
from hashtag.domain.video_record import VideoRecord


class VideoTable(str, Enum):
    MAIN = "hashtag_video"
    STACKING = "hashtag_video_daily"


class HashtagRepositoryPort(ABC):
    @abstractmethod
    def append_records(self, table: VideoTable, records: Iterable[VideoRecord]) -> int:
        raise NotImplementedError

    @abstractmethod
    def read_records(self, table: VideoTable) -> list[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    def overwrite_records(self, table: VideoTable, records: Iterable[VideoRecord]) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_records(self, table: VideoTable, row_ids: Iterable[int]) -> int:
        raise NotImplementedError

    @abstractmethod
    def append_daily_stats(self, stats: Iterable[DailyStat]) -> int:
        raise NotImplementedError

    @abstractmethod
    def read_daily_stats(self, limit: Optional[int] = None) -> list[DailyStat]:
        raise NotImplementedError

    @abstractmethod
    def append_channel_snapshots(self, snapshots: Iterable[ChannelSnapshot]) -> int:
        raise NotImplementedError

    @abstractmethod
    def read_channel_snapshots(
        self, channel_title: Optional[str] = None, limit: Optional[int] = None
    ) -> list[ChannelSnapshot]:
        raise NotImplementedError

    @abstractmethod
    def log_step(self, workflow: str, step: StepResult, logged_at: datetime) -> int:
        """실행 단계 결과를 crawl_log 에 한 행으로 남기고 행 id 를 돌려준다."""
        raise NotImplementedError
