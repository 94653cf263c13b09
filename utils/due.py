from datetime import datetime
from typing import Iterable, List, Optional

from models.card import VocabularyCard, ensure_utc


def _queue_key(card: VocabularyCard):
    return (card.next_review_at, card.id)


def select_due(
    cards: Iterable[VocabularyCard],
    now: datetime,
    limit: Optional[int] = None,
) -> List[VocabularyCard]:
    """Cards due at ``now``, most overdue first, ties broken by id.

    An empty list is the normal "nothing to review" answer.
    """
    now = ensure_utc(now)
    due = [card for card in cards if card.is_due(now)]
    due.sort(key=_queue_key)
    if limit is not None:
        due = due[: max(limit, 0)]
    return due


def count_due(cards: Iterable[VocabularyCard], now: datetime) -> int:
    now = ensure_utc(now)
    return sum(1 for card in cards if card.is_due(now))
