from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class Outcome(str, Enum):
    """Self-reported recall grade, worst to best."""
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


def empty_review_counts() -> Dict[str, int]:
    return {outcome.value: 0 for outcome in Outcome}


class ReviewCreate(BaseModel):
    # Kept as a plain string so unknown grades reach the scheduler and raise InvalidOutcome.
    outcome: str
    card_id: str = Field(min_length=1)


class ReviewLogEntry(BaseModel):
    id: Optional[int] = None
    card_id: str
    learner_id: str
    reviewed_at: datetime
    outcome: Outcome
    success: bool
    interval: int = Field(ge=0)
    ease_factor: float

    class Config:
        from_attributes = True
