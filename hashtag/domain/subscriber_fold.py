import math
from datetime import datetime
from typing import Any, Iterable, Optional

from hashtag.domain.channel_snapshot import ChannelSnapshot
from hashtag.domain.video_record import VideoRecord


def valid_count(value: Any) -> Optional[int]:
    """집계에 쓸 수 있는 수치만 정수로 돌려준다. NaN/비숫자/None 은 None (0 으로 바꾸지 않는다)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def snapshot(records: Iterable[VideoRecord], taken_at: datetime) -> list[ChannelSnapshot]:
    """
    채널명 단위로 메인 테이블 행을 접는다.
    - subscriber_count: 관측값의 최대값 (접는 동안 줄어들지 않음)
    - cumulative_view_count: 행별 view_count 합계
    유효하지 않은 값은 해당 필드의 fold 에서만 제외된다.
    """
    folded: dict[str, ChannelSnapshot] = {}
    for record in records:
        entry = folded.get(record.channel_title)
        if entry is None:
            entry = ChannelSnapshot(date=taken_at, channel_title=record.channel_title)
            folded[record.channel_title] = entry

        subscribers = valid_count(record.subscriber_count)
        if subscribers is not None:
            entry.subscriber_count = max(entry.subscriber_count, subscribers)

        views = valid_count(record.view_count)
        if views is not None:
            entry.cumulative_view_count += views

    return list(folded.values())

