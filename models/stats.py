from typing import List

from pydantic import BaseModel

from .card import VocabularyCard


class VocabularyStats(BaseModel):
    total_cards: int = 0
    new_cards: int = 0
    learning_cards: int = 0
    graduated_cards: int = 0
    due_for_review: int = 0
    reviewed_today: int = 0
    graduated_percent: float = 0.0


class ActiveVocabulary(BaseModel):
    """Graduated words the learner can be expected to use actively."""
    target_words: List[str]
    native_words: List[str]
    cards: List[VocabularyCard]


class StatsResponse(BaseModel):
    stats: VocabularyStats
    active_vocabulary: ActiveVocabulary
