import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from hashtag.application.port.hashtag_repository_port import HashtagRepositoryPort
from hashtag.domain.run_report import RunReport, StepResult

logger = logging.getLogger(__name__)


def record_step(repository: HashtagRepositoryPort, report: RunReport, step: StepResult) -> StepResult:
    """실행 리포트에 단계를 추가하고 crawl_log 에도 남긴다. 로그 저장 실패는 실행을 멈추지 않는다."""
    report.add(step)
    try:
        repository.log_step(report.workflow, step, datetime.now(timezone.utc))
    except SQLAlchemyError:
        logger.exception(f"[CRAWL-LOG] failed to persist step | workflow={report.workflow}, target={step.target}")
    return step
