from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class StepStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StepResult:
    target: str
    status: StepStatus
    count: int = 0
    skipped: int = 0
    reason: Optional[str] = None

    def message(self) -> str:
        text = f"{self.count} rows, {self.skipped} skipped"
        if self.reason:
            text = f"{text} | {self.reason}"
        return text


@dataclass
class RunReport:
    """
    워크플로 1회 실행 결과.
    해시태그(또는 단계)별 성공/스킵/실패 사유를 모아 호출자가 확인할 수 있게 한다.
    """

    workflow: str
    started_at: datetime
    steps: list[StepResult] = field(default_factory=list)
    written_count: int = 0
    duplicate_count: int = 0

    def add(self, step: StepResult) -> StepResult:
        self.steps.append(step)
        return step

    @property
    def failures(self) -> list[StepResult]:
        return [s for s in self.steps if s.status == StepStatus.FAILED]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "workflow": self.workflow,
            "started_at": self.started_at.isoformat(),
            "succeeded": self.succeeded,
            "written_count": self.written_count,
            "duplicate_count": self.duplicate_count,
            "steps": [
                {
                    "target": s.target,
                    "status": s.status.value,
                    "count": s.count,
                    "skipped": s.skipped,
                    "reason": s.reason,
                }
                for s in self.steps
            ],
        }
