from __future__ import annotations

from typing import Iterable

from models.card import CardState, VocabularyCard
from models.review import ReviewLogEntry, empty_review_counts
from utils.sm2 import DEFAULT_EASE_FACTOR, apply_schedule, compute_next_schedule


def reset_progress(card: VocabularyCard) -> VocabularyCard:
    """The card as it was at creation: new, due immediately, no history."""
    return card.model_copy(
        update={
            "state": CardState.NEW,
            "last_reviewed_at": None,
            "graduated_at": None,
            "next_review_at": card.created_at,
            "review_count": 0,
            "success_count": 0,
            "fail_count": 0,
            "consecutive_successes": 0,
            "repetitions": 0,
            "interval": 0,
            "ease_factor": DEFAULT_EASE_FACTOR,
            "review_counts": empty_review_counts(),
        }
    )


def replay_reviews(card: VocabularyCard, reviews: Iterable[ReviewLogEntry]) -> VocabularyCard:
    """Rebuild scheduling state by re-running every logged review in order."""
    ordered = sorted(reviews, key=lambda entry: (entry.reviewed_at, entry.id or 0))
    progress = reset_progress(card)
    for entry in ordered:
        update = compute_next_schedule(progress, entry.outcome, now=entry.reviewed_at)
        progress = apply_schedule(progress, update)
    return progress
