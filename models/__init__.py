from .card import (
    CardState,
    ContextSentence,
    MarkKind,
    SentenceMark,
    VocabularyCard,
    VocabularyCardCreate,
)
from .review import Outcome, ReviewCreate, ReviewLogEntry
from .session import SessionStats, SessionStatus, SessionView
from .stats import ActiveVocabulary, StatsResponse, VocabularyStats

__all__ = [
    'CardState', 'ContextSentence', 'MarkKind', 'SentenceMark', 'VocabularyCard', 'VocabularyCardCreate',
    'Outcome', 'ReviewCreate', 'ReviewLogEntry',
    'SessionStats', 'SessionStatus', 'SessionView',
    'ActiveVocabulary', 'StatsResponse', 'VocabularyStats',
]
