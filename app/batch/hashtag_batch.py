import logging
import sys
from typing import Any, Callable, Dict

from config.database.session import init_db_schema
from config.log_config import configure_logging
from config.settings import TrackerSettings, YouTubeSettings
from hashtag.application.usecase.daily_stats_usecase import DailyStatsUseCase
from hashtag.application.usecase.hashtag_sync_usecase import HashtagSyncUseCase
from hashtag.application.usecase.subscriber_history_usecase import SubscriberHistoryUseCase
from hashtag.infrastructure.client.youtube_client import YouTubeClient
from hashtag.infrastructure.repository.hashtag_repository_impl import HashtagRepositoryImpl

logger = logging.getLogger(__name__)


def _build_client(settings: TrackerSettings) -> YouTubeClient:
    return YouTubeClient(YouTubeSettings(), settings)


def run_full_sync() -> Dict[str, Any]:
    """설정된 모든 해시태그에 대해 전체 동기화(메인 테이블)를 1회 수행한다."""
    settings = TrackerSettings()
    usecase = HashtagSyncUseCase(HashtagRepositoryImpl(), _build_client(settings), settings)
    return usecase.run_full_sync().to_dict()


def run_daily_incremental() -> Dict[str, Any]:
    settings = TrackerSettings()
    usecase = HashtagSyncUseCase(HashtagRepositoryImpl(), _build_client(settings), settings)
    return usecase.run_daily_incremental().to_dict()


def compute_daily_stats() -> Dict[str, Any]:
    settings = TrackerSettings()
    usecase = DailyStatsUseCase(HashtagRepositoryImpl(), _build_client(settings), settings)
    return usecase.compute_daily_stats().to_dict()


def update_subscriber_history() -> Dict[str, Any]:
    usecase = SubscriberHistoryUseCase(HashtagRepositoryImpl())
    return usecase.update_subscriber_history().to_dict()


WORKFLOWS: Dict[str, Callable[[], Dict[str, Any]]] = {
    "full-sync": run_full_sync,
    "daily-incremental": run_daily_incremental,
    "daily-stats": compute_daily_stats,
    "subscriber-history": update_subscriber_history,
}


def main(argv: list[str]) -> int:
    # 외부 스케줄러(cron 등)에서 호출: python -m app.batch.hashtag_batch full-sync
    configure_logging()
    if len(argv) != 1 or argv[0] not in WORKFLOWS:
        print(f"usage: python -m app.batch.hashtag_batch [{'|'.join(WORKFLOWS)}]", file=sys.stderr)
        return 2

    init_db_schema()
    name = argv[0]
    logger.info(f"[HASHTAG-BATCH] run started | workflow={name}")
    try:
        result = WORKFLOWS[name]()
    except Exception:
        logger.exception(f"[HASHTAG-BATCH] run failed | workflow={name}")
        return 1
    logger.info(f"[HASHTAG-BATCH] run finished | {result}")
    return 0 if result["succeeded"] else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
