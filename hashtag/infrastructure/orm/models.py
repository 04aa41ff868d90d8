from datetime import datetime

from sqlalchemy import BigInteger, Column, Date, DateTime, Integer, String, Text

from config.database.session import Base

# SQLite 는 INTEGER PRIMARY KEY 만 자동 증가하므로 변형 타입을 쓴다.
RowId = BigInteger().with_variant(Integer, "sqlite")


class VideoRecordColumns:
    # 메인 테이블과 스태킹 테이블이 공유하는 13개 컬럼. row_id 가 행 위치를 나타낸다.
    row_id = Column(RowId, primary_key=True, autoincrement=True)
    fetched_at = Column(DateTime, nullable=False)
    hashtag = Column(String(255), nullable=False)
    video_id = Column(String(100), nullable=False, index=True)
    category = Column(String(50), nullable=False)
    title = Column(String(500))
    url = Column(String(500))
    channel_title = Column(String(255))
    subscriber_count = Column(BigInteger)
    published_at = Column(DateTime)
    description = Column(Text)
    view_count = Column(BigInteger)
    like_count = Column(BigInteger)
    comment_count = Column(BigInteger)


class HashtagVideoORM(VideoRecordColumns, Base):
    __tablename__ = "hashtag_video"


class HashtagVideoDailyORM(VideoRecordColumns, Base):
    __tablename__ = "hashtag_video_daily"


class DailyHashtagStatORM(Base):
    __tablename__ = "daily_hashtag_stat"

    id = Column(RowId, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    hashtag = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False)
    video_count = Column(Integer)
    channel_count = Column(Integer)
    total_views = Column(BigInteger)


class ChannelSubscriberHistoryORM(Base):
    __tablename__ = "channel_subscriber_history"

    id = Column(RowId, primary_key=True, autoincrement=True)
    date = Column(DateTime, nullable=False)
    channel_title = Column(String(255), nullable=False)
    subscriber_count = Column(BigInteger)
    view_count = Column(BigInteger)


class CrawlLogORM(Base):
    __tablename__ = "crawl_log"

    # 워크플로 실행의 단계(해시태그, 중복 제거 등)마다 한 행
    id = Column(RowId, primary_key=True, autoincrement=True)
    workflow = Column(String(50), nullable=False, index=True)
    target = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False)
    row_count = Column(Integer, nullable=False, default=0)
    skipped_count = Column(Integer, nullable=False, default=0)
    reason = Column(Text)
    logged_at = Column(DateTime, default=datetime.utcnow)
