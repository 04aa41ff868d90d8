import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from config.settings import TrackerSettings
from hashtag.application.port.hashtag_repository_port import HashtagRepositoryPort, VideoTable
from hashtag.application.port.video_search_port import VideoSearchPort
from hashtag.application.usecase.step_recorder import record_step
from hashtag.application.usecase.video_collection import VideoCollector
from hashtag.domain.daily_aggregation import aggregate
from hashtag.domain.day_window import local_date
from hashtag.domain.run_report import RunReport, StepResult, StepStatus
from hashtag.domain.video_record import VideoRecord

logger = logging.getLogger(__name__)

DAILY_STATS = "daily_stats"


class DailyStatsUseCase:
    def __init__(self, repository: HashtagRepositoryPort, client: VideoSearchPort, settings: TrackerSettings):
        self.repository = repository
        self.collector = VideoCollector(client)
        self.settings = settings

    def compute_daily_stats(self, now: Optional[datetime] = None) -> RunReport:
        """
        오늘(설정 시간대 기준) 일자의 (해시태그, 영상 타입) 집계 행을 추가한다.
        - raw: 해시태그별로 새로 조회한 결과(중복 제거 전)를 집계. 여러 해시태그에 걸린 영상은 각 해시태그에서 모두 센다.
        - store: 중복 제거된 메인 테이블을 집계.
        """
        now = now or datetime.now(timezone.utc)
        day = local_date(now, self.settings.tzinfo)
        report = RunReport(workflow=DAILY_STATS, started_at=now)

        if self.settings.daily_stats_source == "store":
            records = self.repository.read_records(VideoTable.MAIN)
        else:
            records = self._fetch_raw(report, now)

        stats = aggregate(records, self.settings.hashtags, day)
        try:
            written = self.repository.append_daily_stats(stats)
        except SQLAlchemyError as exc:
            logger.exception(f"[DAILY-STATS] failed to append stats | date={day}")
            record_step(self.repository, report, StepResult(str(day), StepStatus.FAILED, reason=str(exc)))
            return report

        report.written_count = written
        logger.info(f"[DAILY-STATS] appended | date={day}, rows={written}")
        record_step(self.repository, report, StepResult(str(day), StepStatus.SUCCESS, count=written))
        return report

    def _fetch_raw(self, report: RunReport, now: datetime) -> list[VideoRecord]:
        published_after = now - timedelta(days=self.settings.full_sync_lookback_days)
        records: list[VideoRecord] = []
        for hashtag in self.settings.hashtags:
            batch = self.collector.collect(hashtag, published_after, now)
            if batch.error:
                # 실패한 해시태그는 0 건으로 집계된다.
                record_step(
                    self.repository,
                    report,
                    StepResult(hashtag, StepStatus.FAILED, skipped=batch.skipped, reason=batch.error),
                )
                continue
            records.extend(batch.records)
        return records
