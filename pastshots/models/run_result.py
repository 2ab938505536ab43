"""Run result data structures."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

# created:   no baseline existed, capture stored as the new baseline
# unchanged: capture matched the baseline
# settled:   first capture differed, retry capture matched, nothing written
# changed:   difference confirmed by the retry, baseline overwritten
PageOutcome = Literal["created", "unchanged", "settled", "changed"]


class PageResult(BaseModel):
    name: str
    url: str
    outcome: PageOutcome
    baseline_path: str
    diff_path: Optional[str] = None
    divergence: Optional[float] = None  # largest per-pixel delta E of the deciding comparison


class RunResult(BaseModel):
    started_at: str
    completed_at: str = ""
    duration_seconds: float = 0.0
    pages: list[PageResult] = Field(default_factory=list)

    def count(self, outcome: PageOutcome) -> int:
        return sum(1 for p in self.pages if p.outcome == outcome)

    @property
    def created(self) -> int:
        return self.count("created")

    @property
    def unchanged(self) -> int:
        return self.count("unchanged")

    @property
    def settled(self) -> int:
        return self.count("settled")

    @property
    def changed(self) -> int:
        return self.count("changed")

    @property
    def diff_paths(self) -> list[str]:
        return [p.diff_path for p in self.pages if p.diff_path]
