from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire (what the web client sends)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemOut(CamelModel):
    id: str
    domain: str
    section: Optional[str] = None
    self_assessed: bool
    data: dict[str, Any]


class ItemListOut(CamelModel):
    items: list[ItemOut]
    count: int


class PoolOut(CamelModel):
    domain: str
    sections: list[str]
    requires_section: bool
    item_count: int


class PoolsOut(CamelModel):
    pools: list[PoolOut]


class ItemStatsOut(CamelModel):
    item_id: str
    total_attempts: int
    correct_attempts: int
    last_attempt_at: Optional[datetime] = None
    last_was_correct: Optional[bool] = None
    confidence_level: str
    accuracy: float


class StatsSummaryOut(CamelModel):
    total: int
    unseen: int
    weak: int
    learning: int
    strong: int
    mastered: int
    seen_count: int
    seen_percentage: int


class NextItemOut(CamelModel):
    item: Optional[ItemOut] = None
    phase: Literal["coverage", "drilling", "mastered"]
    stats: StatsSummaryOut
    item_stats: Optional[ItemStatsOut] = None
    shuffled_order: Optional[str] = None
    current_index: Optional[int] = None
    last_served: Optional[str] = None
    message: Optional[str] = None


class AttemptIn(CamelModel):
    item_id: str = Field(min_length=1)
    selected_answer: str = Field(min_length=1)
    session_id: Optional[int] = None


class AttemptOut(CamelModel):
    id: int
    is_correct: bool
    correct_answer: str


class SessionStartIn(CamelModel):
    domain: str = "questions"
    section: Optional[str] = None
    target_size: Optional[int] = Field(default=None, ge=1, le=200)


class SessionStartOut(CamelModel):
    session_id: int
    items: list[ItemOut]
    count: int
    quota_per_section: dict[str, int]


class SessionCompleteIn(CamelModel):
    session_id: int


class SectionResultOut(CamelModel):
    total: int
    correct: int
    accuracy: float
    passed: bool


class SessionCompleteOut(CamelModel):
    session_id: int
    completed: bool = True
    completed_at: Optional[datetime] = None
    total: int
    correct: int
    incorrect: int
    passed: bool
    by_section: dict[str, SectionResultOut]


class SessionHistoryEntryOut(CamelModel):
    id: int
    domain: str
    created_at: datetime
    completed_at: Optional[datetime] = None
    questions_correct: int
    questions_total: int
    sections_covered: list[str]
    passed: bool


class SessionHistoryOut(CamelModel):
    sessions: list[SessionHistoryEntryOut]


class SectionProgressOut(CamelModel):
    total_items: int
    items_attempted: int
    total_attempts: int
    correct_attempts: int
    correctness_rate: float
    passing: bool


class WeakAreaOut(CamelModel):
    item: ItemOut
    stats: ItemStatsOut


class DashboardOut(CamelModel):
    overall: SectionProgressOut
    by_section: dict[str, SectionProgressOut]
    weak_areas: list[WeakAreaOut]


class AttemptHistoryOut(CamelModel):
    id: int
    selected_answer: str
    is_correct: bool
    created_at: Optional[datetime] = None
    session_id: Optional[int] = None


class ItemDetailOut(CamelModel):
    item: ItemOut
    stats: ItemStatsOut
    attempts: list[AttemptHistoryOut]


def item_out(item) -> ItemOut:
    return ItemOut(
        id=item.id,
        domain=item.domain,
        section=item.section,
        self_assessed=item.self_assessed,
        data=item.payload,
    )


def item_stats_out(stats) -> ItemStatsOut:
    return ItemStatsOut(
        item_id=stats.item_id,
        total_attempts=stats.total_attempts,
        correct_attempts=stats.correct_attempts,
        last_attempt_at=stats.last_attempt_at,
        last_was_correct=stats.last_was_correct,
        confidence_level=stats.confidence_level.value,
        accuracy=round(stats.accuracy, 1),
    )


def summary_out(summary) -> StatsSummaryOut:
    return StatsSummaryOut.model_validate(summary, from_attributes=True)


def progress_out(progress) -> SectionProgressOut:
    return SectionProgressOut.model_validate(progress, from_attributes=True)
