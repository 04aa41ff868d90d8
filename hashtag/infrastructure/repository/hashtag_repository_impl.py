from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import NoSuchTableError

from config.database.session import SessionLocal
from hashtag.application.port.hashtag_repository_port import HashtagRepositoryPort, VideoTable
from hashtag.domain.channel_snapshot import ChannelSnapshot
from hashtag.domain.daily_stat import DailyStat
from hashtag.domain.errors import StoreSchemaError
from hashtag.domain.run_report import StepResult
from hashtag.domain.video_record import VIDEO_RECORD_COLUMNS, VideoCategory, VideoRecord
from hashtag.infrastructure.orm.models import (
    ChannelSubscriberHistoryORM,
    CrawlLogORM,
    DailyHashtagStatORM,
    HashtagVideoDailyORM,
    HashtagVideoORM,
)

VIDEO_MODELS = {
    VideoTable.MAIN: HashtagVideoORM,
    VideoTable.STACKING: HashtagVideoDailyORM,
}

DAILY_STAT_COLUMNS = ("date", "hashtag", "category", "video_count", "channel_count", "total_views")
SUBSCRIBER_HISTORY_COLUMNS = ("date", "channel_title", "subscriber_count", "view_count")


def _to_storage(dt: datetime | None) -> datetime | None:
    """UTC 로 변환한 뒤 tzinfo 를 떼어 저장한다 (DB 에는 UTC 벽시계 시각이 남는다)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _from_storage(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class HashtagRepositoryImpl(HashtagRepositoryPort):
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def append_records(self, table: VideoTable, records: Iterable[VideoRecord]) -> int:
        model = VIDEO_MODELS[table]
        rows = [self._to_video_orm(model, record) for record in records]
        if not rows:
            return 0
        with self.session_factory() as db:
            db.add_all(rows)
            db.commit()
        return len(rows)

    def read_records(self, table: VideoTable) -> list[VideoRecord]:
        model = VIDEO_MODELS[table]
        with self.session_factory() as db:
            self._require_columns(db, table.value, VIDEO_RECORD_COLUMNS)
            rows = db.query(model).order_by(model.row_id.asc()).all()
            return [self._to_video_record(row) for row in rows]

    def overwrite_records(self, table: VideoTable, records: Iterable[VideoRecord]) -> int:
        # 전체 삭제 후 재삽입을 한 트랜잭션으로 처리한다. 테이블 스키마(헤더)는 유지된다.
        model = VIDEO_MODELS[table]
        rows = [self._to_video_orm(model, record) for record in records]
        with self.session_factory() as db:
            try:
                db.query(model).delete(synchronize_session=False)
                db.add_all(rows)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return len(rows)

    def delete_records(self, table: VideoTable, row_ids: Iterable[int]) -> int:
        model = VIDEO_MODELS[table]
        deleted = 0
        with self.session_factory() as db:
            # 위치 밀림이 없도록 큰 row_id 부터 지운다.
            for row_id in sorted(set(row_ids), reverse=True):
                deleted += db.query(model).filter(model.row_id == row_id).delete(synchronize_session=False)
            db.commit()
        return deleted

    def append_daily_stats(self, stats: Iterable[DailyStat]) -> int:
        rows = [
            DailyHashtagStatORM(
                date=stat.date,
                hashtag=stat.hashtag,
                category=stat.category.value,
                video_count=stat.video_count,
                channel_count=stat.channel_count,
                total_views=stat.total_views,
            )
            for stat in stats
        ]
        if not rows:
            return 0
        with self.session_factory() as db:
            db.add_all(rows)
            db.commit()
        return len(rows)

    def read_daily_stats(self, limit: Optional[int] = None) -> list[DailyStat]:
        with self.session_factory() as db:
            self._require_columns(db, DailyHashtagStatORM.__tablename__, DAILY_STAT_COLUMNS)
            query = db.query(DailyHashtagStatORM).order_by(
                DailyHashtagStatORM.date.desc(),
                DailyHashtagStatORM.hashtag.asc(),
                DailyHashtagStatORM.category.asc(),
            )
            if limit is not None:
                query = query.limit(limit)
            return [
                DailyStat(
                    date=row.date,
                    hashtag=row.hashtag,
                    category=VideoCategory(row.category),
                    video_count=int(row.video_count or 0),
                    channel_count=int(row.channel_count or 0),
                    total_views=int(row.total_views or 0),
                )
                for row in query.all()
            ]

    def append_channel_snapshots(self, snapshots: Iterable[ChannelSnapshot]) -> int:
        rows = [
            ChannelSubscriberHistoryORM(
                date=_to_storage(snap.date),
                channel_title=snap.channel_title,
                subscriber_count=snap.subscriber_count,
                view_count=snap.cumulative_view_count,
            )
            for snap in snapshots
        ]
        if not rows:
            return 0
        with self.session_factory() as db:
            db.add_all(rows)
            db.commit()
        return len(rows)

    def read_channel_snapshots(
        self, channel_title: Optional[str] = None, limit: Optional[int] = None
    ) -> list[ChannelSnapshot]:
        with self.session_factory() as db:
            self._require_columns(db, ChannelSubscriberHistoryORM.__tablename__, SUBSCRIBER_HISTORY_COLUMNS)
            query = db.query(ChannelSubscriberHistoryORM)
            if channel_title is not None:
                query = query.filter(ChannelSubscriberHistoryORM.channel_title == channel_title)
            query = query.order_by(
                ChannelSubscriberHistoryORM.date.desc(),
                ChannelSubscriberHistoryORM.channel_title.asc(),
            )
            if limit is not None:
                query = query.limit(limit)
            return [
                ChannelSnapshot(
                    date=_from_storage(row.date),
                    channel_title=row.channel_title,
                    subscriber_count=int(row.subscriber_count or 0),
                    cumulative_view_count=int(row.view_count or 0),
                )
                for row in query.all()
            ]

    def log_step(self, workflow: str, step: StepResult, logged_at: datetime) -> int:
        orm = CrawlLogORM(
            workflow=workflow,
            target=step.target,
            status=step.status.value,
            row_count=step.count,
            skipped_count=step.skipped,
            reason=step.reason,
            logged_at=_to_storage(logged_at),
        )
        with self.session_factory() as db:
            db.add(orm)
            db.commit()
            return orm.id

    @staticmethod
    def _require_columns(db, table_name: str, expected: Iterable[str]) -> None:
        """컬럼명 -> 위치 매핑을 만들 수 없으면(테이블/컬럼 누락) 즉시 실패한다."""
        try:
            present = {column["name"] for column in inspect(db.get_bind()).get_columns(table_name)}
        except NoSuchTableError:
            present = set()
        missing = [name for name in expected if name not in present]
        if missing:
            raise StoreSchemaError(table_name, missing)

    @staticmethod
    def _to_video_orm(model, record: VideoRecord):
        return model(
            fetched_at=_to_storage(record.fetched_at),
            hashtag=record.hashtag,
            video_id=record.video_id,
            category=record.category.value,
            title=record.title,
            url=record.url,
            channel_title=record.channel_title,
            subscriber_count=record.subscriber_count,
            published_at=_to_storage(record.published_at),
            description=record.description,
            view_count=record.view_count,
            like_count=record.like_count,
            comment_count=record.comment_count,
        )

    @staticmethod
    def _to_video_record(row) -> VideoRecord:
        return VideoRecord(
            fetched_at=_from_storage(row.fetched_at),
            hashtag=row.hashtag,
            video_id=row.video_id,
            category=VideoCategory(row.category),
            title=row.title or "",
            url=row.url or "",
            channel_title=row.channel_title or "",
            subscriber_count=row.subscriber_count,
            published_at=_from_storage(row.published_at),
            description=row.description or "",
            view_count=row.view_count,
            like_count=row.like_count,
            comment_count=row.comment_count,
            row_id=row.row_id,
        )
