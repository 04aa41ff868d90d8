from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TagFetchResult:
    """
    해시태그 1개에 대한 조회 결과.
    - videos: videos.list 원본 item 목록
    - channels: channel_id -> channels.list 원본 item
    - error: 조회 실패 시 사유 (실패해도 빈 결과로 반환된다)
    """

    hashtag: str
    videos: list[dict] = field(default_factory=list)
    channels: dict[str, dict] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
