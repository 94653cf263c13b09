from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from models.card import CardState, VocabularyCard, ensure_utc
from models.stats import ActiveVocabulary, VocabularyStats
from utils.due import count_due
from utils.mastery import mastery_percent


def cards_by_state(cards: Iterable[VocabularyCard], state: CardState) -> List[VocabularyCard]:
    return [card for card in cards if card.state == state]


def compute_vocabulary_stats(cards: Iterable[VocabularyCard], now: datetime) -> VocabularyStats:
    """Collection-wide counts; "today" starts at midnight UTC of ``now``."""
    now = ensure_utc(now)
    cards = list(cards)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    graduated = len(cards_by_state(cards, CardState.GRADUATED))
    return VocabularyStats(
        total_cards=len(cards),
        new_cards=len(cards_by_state(cards, CardState.NEW)),
        learning_cards=len(cards_by_state(cards, CardState.LEARNING)),
        graduated_cards=graduated,
        due_for_review=count_due(cards, now),
        reviewed_today=sum(
            1 for card in cards
            if card.last_reviewed_at is not None and card.last_reviewed_at >= start_of_day
        ),
        graduated_percent=mastery_percent(graduated, len(cards)),
    )


def active_vocabulary(cards: Iterable[VocabularyCard]) -> ActiveVocabulary:
    graduated = cards_by_state(cards, CardState.GRADUATED)
    return ActiveVocabulary(
        target_words=[card.target_text for card in graduated],
        native_words=[card.native_text for card in graduated],
        cards=graduated,
    )
