from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


def local_date(now: datetime, tz: ZoneInfo) -> date:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def day_window(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """now 가 속한 (tz 기준) 달력상 하루의 [시작, 다음날 시작) 구간을 반환한다."""
    start = datetime.combine(local_date(now, tz), time.min, tzinfo=tz)
    end = datetime.combine(start.date() + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def to_rfc3339(dt: datetime) -> str:
    # YouTube API 가 요구하는 UTC RFC3339 형식 (예: 2026-02-05T12:00:00Z)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
