from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .review import empty_review_counts


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CardState(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    GRADUATED = "graduated"


class MarkKind(str, Enum):
    SINGLE = "single"
    GROUP = "group"


class SentenceMark(BaseModel):
    """Which token span of the context sentence a card was marked from."""
    token_ids: List[str]
    sentence_id: Optional[int] = None
    kind: MarkKind = MarkKind.SINGLE

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_token_count(self):
        if not self.token_ids:
            raise ValueError("A mark needs at least one token id")
        if self.kind == MarkKind.SINGLE and len(self.token_ids) != 1:
            raise ValueError("A single mark covers exactly one token")
        return self


class ContextSentence(BaseModel):
    """Snapshot of the sentence a word was learned from: four aligned text lines."""
    target: str
    transliteration: str = ""
    decoded: str = ""
    translation: str = ""
    mark: Optional[SentenceMark] = None

    class Config:
        frozen = True


class VocabularyCardBase(BaseModel):
    target_text: str = Field(min_length=1)
    native_text: str = Field(min_length=1)
    transliteration: str = ""
    context_sentence: ContextSentence
    lesson_id: Optional[str] = None
    level_id: Optional[str] = None


class VocabularyCardCreate(VocabularyCardBase):
    pass


class VocabularyCard(VocabularyCardBase):
    id: str
    learner_id: str
    state: CardState = CardState.NEW
    created_at: datetime
    last_reviewed_at: Optional[datetime] = None
    graduated_at: Optional[datetime] = None
    next_review_at: datetime
    review_count: int = Field(0, ge=0)
    success_count: int = Field(0, ge=0)
    fail_count: int = Field(0, ge=0)
    consecutive_successes: int = Field(0, ge=0)
    repetitions: int = Field(0, ge=0)
    interval: int = Field(0, ge=0)  # days; 0 until the first review
    ease_factor: float = Field(2.5, ge=1.3)
    review_counts: Dict[str, int] = Field(default_factory=empty_review_counts)

    class Config:
        from_attributes = True

    @field_validator("created_at", "last_reviewed_at", "graduated_at", "next_review_at")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)

    @field_validator("review_counts")
    @classmethod
    def fill_review_counts(cls, value: Dict[str, int]) -> Dict[str, int]:
        counts = empty_review_counts()
        for key, count in value.items():
            if key not in counts:
                raise ValueError(f"Unknown outcome in review counts: {key}")
            counts[key] = int(count)
        return counts

    @model_validator(mode="after")
    def check_counters(self):
        if self.review_count != self.success_count + self.fail_count:
            raise ValueError("review_count must equal success_count + fail_count")
        return self

    def is_due(self, now: datetime) -> bool:
        """Due means not graduated and scheduled at or before ``now``."""
        return self.state != CardState.GRADUATED and self.next_review_at <= ensure_utc(now)

    @property
    def success_rate(self) -> float:
        if self.review_count == 0:
            return 0.0
        return self.success_count / self.review_count
