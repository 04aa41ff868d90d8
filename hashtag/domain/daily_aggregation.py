from datetime import date
from typing import Iterable, Sequence

from hashtag.domain.daily_stat import DailyStat
from hashtag.domain.video_record import VideoCategory, VideoRecord

# 해시태그마다 통상 -> 쇼츠 순으로 한 행씩 출력한다.
CATEGORY_ORDER = (VideoCategory.REGULAR, VideoCategory.SHORT)


def aggregate(records: Sequence[VideoRecord], hashtags: Iterable[str], day: date) -> list[DailyStat]:
    """
    (해시태그, 영상 타입) 조합마다 영상 수, 고유 채널 수, 총 조회수를 계산한다.
    매칭되는 영상이 없어도 0 으로 채운 행을 반드시 출력한다.
    """
    stats: list[DailyStat] = []
    for hashtag in dict.fromkeys(hashtags):
        for category in CATEGORY_ORDER:
            matches = [r for r in records if r.hashtag == hashtag and r.category == category]
            stats.append(
                DailyStat(
                    date=day,
                    hashtag=hashtag,
                    category=category,
                    video_count=len(matches),
                    channel_count=len({r.channel_title for r in matches}),
                    total_views=sum(r.view_count or 0 for r in matches),
                )
            )
    return stats
