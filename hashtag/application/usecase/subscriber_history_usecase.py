import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from hashtag.application.port.hashtag_repository_port import HashtagRepositoryPort, VideoTable
from hashtag.application.usecase.step_recorder import record_step
from hashtag.domain.run_report import RunReport, StepResult, StepStatus
from hashtag.domain.subscriber_fold import snapshot

logger = logging.getLogger(__name__)

SUBSCRIBER_HISTORY = "subscriber_history"


class SubscriberHistoryUseCase:
    def __init__(self, repository: HashtagRepositoryPort):
        self.repository = repository

    def update_subscriber_history(self, now: Optional[datetime] = None) -> RunReport:
        """
        메인 테이블 전체에서 채널별 최대 구독자 수/누적 조회수를 다시 계산해 이력 테이블에 추가한다.
        메인 테이블에 필요한 컬럼이 없으면 StoreSchemaError 로 중단된다.
        """
        now = now or datetime.now(timezone.utc)
        report = RunReport(workflow=SUBSCRIBER_HISTORY, started_at=now)

        records = self.repository.read_records(VideoTable.MAIN)
        snapshots = snapshot(records, now)
        try:
            written = self.repository.append_channel_snapshots(snapshots)
        except SQLAlchemyError as exc:
            logger.exception("[SUBSCRIBER-HISTORY] failed to append snapshots")
            record_step(self.repository, report, StepResult("channels", StepStatus.FAILED, reason=str(exc)))
            return report

        report.written_count = written
        logger.info(f"[SUBSCRIBER-HISTORY] appended | channels={written}")
        record_step(self.repository, report, StepResult("channels", StepStatus.SUCCESS, count=written))
        return report
