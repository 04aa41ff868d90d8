from dataclasses import dataclass
from datetime import datetime


@dataclass
class ChannelSnapshot:
    """
    채널 단위 구독자 수/누적 조회수 스냅샷.
    실행 시점의 메인 테이블 전체를 접어서(fold) 매번 새로 계산한다.
    """
    date: datetime
    channel_title: str
    subscriber_count: int = 0
    cumulative_view_count: int = 0
