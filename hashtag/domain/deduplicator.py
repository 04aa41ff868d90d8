"""
video_id 기준 중복 제거.

규칙은 하나뿐이다: fetched_at 내림차순으로 안정 정렬한 뒤 video_id 별 첫 행(가장 최근 수집본)만 남긴다.
동률이면 입력 순서가 앞선 행이 남는다.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from hashtag.domain.video_record import VideoRecord


@dataclass
class DedupeResult:
    kept: list[VideoRecord] = field(default_factory=list)
    removed: list[VideoRecord] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        return len(self.removed)


def _as_utc(dt: datetime) -> datetime:
    # naive/aware 혼재 시 비교 오류를 막기 위해 UTC aware 로 통일
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def partition_duplicates(records: Sequence[VideoRecord]) -> DedupeResult:
    order = sorted(
        range(len(records)),
        key=lambda i: _as_utc(records[i].fetched_at),
        reverse=True,
    )
    seen: set[str] = set()
    result = DedupeResult()
    for index in order:
        record = records[index]
        if record.video_id in seen:
            result.removed.append(record)
            continue
        seen.add(record.video_id)
        result.kept.append(record)
    return result


def dedupe(records: Sequence[VideoRecord]) -> list[VideoRecord]:
    return partition_duplicates(records).kept


def dedupe_within_window(
    records: Sequence[VideoRecord],
    window_start: datetime,
    window_end: datetime,
) -> DedupeResult:
    """
    fetched_at 이 [window_start, window_end) 에 속한 행끼리만 중복 제거한다.
    윈도우 밖의 행은 그대로 kept 에 포함된다.
    """
    start, end = _as_utc(window_start), _as_utc(window_end)
    inside: list[VideoRecord] = []
    outside: list[VideoRecord] = []
    for record in records:
        if start <= _as_utc(record.fetched_at) < end:
            inside.append(record)
        else:
            outside.append(record)

    partial = partition_duplicates(inside)
    return DedupeResult(kept=outside + partial.kept, removed=partial.removed)
