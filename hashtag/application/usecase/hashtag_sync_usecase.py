import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from config.settings import TrackerSettings
from hashtag.application.port.hashtag_repository_port import HashtagRepositoryPort, VideoTable
from hashtag.application.port.video_search_port import VideoSearchPort
from hashtag.application.usecase.step_recorder import record_step
from hashtag.application.usecase.video_collection import VideoCollector
from hashtag.domain.day_window import day_window
from hashtag.domain.deduplicator import dedupe_within_window, partition_duplicates
from hashtag.domain.run_report import RunReport, StepResult, StepStatus

logger = logging.getLogger(__name__)

FULL_SYNC = "full_sync"
DAILY_INCREMENTAL = "daily_incremental"


class HashtagSyncUseCase:
    """
    해시태그 영상 적재 워크플로.
    - run_full_sync: 최근 N일(기본 365일) 영상을 메인 테이블에 추가한 뒤 테이블 전체를 중복 제거해 덮어쓴다.
    - run_daily_incremental: 오늘 게시된 영상을 스태킹 테이블에 추가한 뒤 오늘 수집분끼리만 중복 제거한다.
    해시태그 하나의 조회/저장 실패는 나머지 해시태그 처리에 영향을 주지 않는다.
    """

    def __init__(self, repository: HashtagRepositoryPort, client: VideoSearchPort, settings: TrackerSettings):
        self.repository = repository
        self.collector = VideoCollector(client)
        self.settings = settings

    def run_full_sync(self, now: Optional[datetime] = None) -> RunReport:
        now = now or datetime.now(timezone.utc)
        published_after = now - timedelta(days=self.settings.full_sync_lookback_days)
        report = RunReport(workflow=FULL_SYNC, started_at=now)

        self._append_per_hashtag(report, VideoTable.MAIN, published_after, now)

        records = self.repository.read_records(VideoTable.MAIN)
        result = partition_duplicates(records)
        # 중복 제거 결과는 원래 행 순서대로 다시 쓴다.
        kept = sorted(result.kept, key=lambda r: r.row_id or 0)
        try:
            self.repository.overwrite_records(VideoTable.MAIN, kept)
        except SQLAlchemyError as exc:
            logger.exception("[HASHTAG-SYNC] failed to overwrite deduplicated main table")
            record_step(self.repository, report, StepResult("dedupe", StepStatus.FAILED, reason=str(exc)))
            return report

        report.duplicate_count = result.duplicate_count
        if result.duplicate_count:
            logger.info(f"[HASHTAG-SYNC] removed duplicates | count={result.duplicate_count}")
        record_step(self.repository, report, StepResult("dedupe", StepStatus.SUCCESS, count=result.duplicate_count))
        return report

    def run_daily_incremental(self, now: Optional[datetime] = None) -> RunReport:
        now = now or datetime.now(timezone.utc)
        window_start, window_end = day_window(now, self.settings.tzinfo)
        report = RunReport(workflow=DAILY_INCREMENTAL, started_at=now)

        self._append_per_hashtag(report, VideoTable.STACKING, window_start, now)

        records = self.repository.read_records(VideoTable.STACKING)
        result = dedupe_within_window(records, window_start, window_end)
        row_ids = [r.row_id for r in result.removed if r.row_id is not None]
        try:
            deleted = self.repository.delete_records(VideoTable.STACKING, row_ids)
        except SQLAlchemyError as exc:
            logger.exception("[HASHTAG-SYNC] failed to delete superseded stacking rows")
            record_step(self.repository, report, StepResult("dedupe", StepStatus.FAILED, reason=str(exc)))
            return report

        report.duplicate_count = deleted
        record_step(self.repository, report, StepResult("dedupe", StepStatus.SUCCESS, count=deleted))
        return report

    def _append_per_hashtag(
        self, report: RunReport, table: VideoTable, published_after: datetime, fetched_at: datetime
    ) -> None:
        for hashtag in self.settings.hashtags:
            logger.info(f"[HASHTAG-SYNC] {report.workflow} | hashtag={hashtag}")
            batch = self.collector.collect(hashtag, published_after, fetched_at)
            if batch.error:
                record_step(
                    self.repository,
                    report,
                    StepResult(hashtag, StepStatus.FAILED, skipped=batch.skipped, reason=batch.error),
                )
                continue
            if not batch.records:
                record_step(
                    self.repository,
                    report,
                    StepResult(hashtag, StepStatus.SKIPPED, skipped=batch.skipped, reason="no videos"),
                )
                continue
            try:
                written = self.repository.append_records(table, batch.records)
            except SQLAlchemyError as exc:
                logger.exception(f"[HASHTAG-SYNC] failed to append rows | hashtag={hashtag}, table={table.value}")
                record_step(
                    self.repository,
                    report,
                    StepResult(hashtag, StepStatus.FAILED, skipped=batch.skipped, reason=str(exc)),
                )
                continue
            report.written_count += written
            logger.info(f"[HASHTAG-SYNC] appended | hashtag={hashtag}, rows={written}")
            record_step(
                self.repository,
                report,
                StepResult(hashtag, StepStatus.SUCCESS, count=written, skipped=batch.skipped),
            )
