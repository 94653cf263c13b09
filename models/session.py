from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .card import VocabularyCard


class SessionStatus(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SessionStats(BaseModel):
    reviewed: int = 0
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0
    newly_graduated: int = 0
    # Whole-collection figures, filled in when the session completes.
    total_cards: int = 0
    graduated_count: int = 0
    due_count: int = 0


class SessionView(BaseModel):
    status: SessionStatus
    queue_size: int
    remaining: int
    current_card: Optional[VocabularyCard] = None
    stats: SessionStats
    persistence_failures: int = 0
