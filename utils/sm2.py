import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Union

from models.card import CardState, VocabularyCard, ensure_utc, utcnow
from models.review import Outcome
from utils.errors import InvalidOutcome
from utils.mastery import graduation_status

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
PASSING_QUALITY = 3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
RELEARN_INTERVAL_DAYS = 1

QUALITY_BY_OUTCOME = {
    Outcome.AGAIN: 0,
    Outcome.HARD: 3,
    Outcome.GOOD: 4,
    Outcome.EASY: 5,
}


def parse_outcome(outcome: Union[Outcome, str]) -> Outcome:
    """Accept an Outcome or its name in any case; anything else is rejected."""
    if isinstance(outcome, Outcome):
        return outcome
    if isinstance(outcome, str):
        try:
            return Outcome(outcome.strip().lower())
        except ValueError:
            pass
    raise InvalidOutcome(outcome)


def map_outcome_to_quality(outcome: Union[Outcome, str]) -> int:
    """Map a review outcome to SM-2 quality score (0-5)."""
    return QUALITY_BY_OUTCOME[parse_outcome(outcome)]


def update_ease_factor(ease_factor: float, quality: int) -> float:
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ScheduleUpdate:
    """Card fields produced by one review, plus the outcome that produced them."""
    state: CardState
    interval: int
    ease_factor: float
    repetitions: int
    consecutive_successes: int
    review_count: int
    success_count: int
    fail_count: int
    review_counts: Dict[str, int]
    last_reviewed_at: datetime
    next_review_at: datetime
    graduated_at: Optional[datetime]
    outcome: Outcome
    success: bool

    def card_fields(self) -> Dict:
        fields = asdict(self)
        fields.pop("outcome")
        fields.pop("success")
        return fields


def compute_next_schedule(
    card: VocabularyCard,
    outcome: Union[Outcome, str],
    now: Optional[datetime] = None,
) -> ScheduleUpdate:
    """Compute the state, interval and ease factor that follow a review of ``card``.

    Failures (quality < 3) send the card back to ``new`` with a one-day interval
    and leave the ease factor alone. Successes adjust the ease factor and walk
    the 1 / 6 / previous x ease interval ladder; graduation is only possible
    from the third repetition on.
    """
    grade = parse_outcome(outcome)
    quality = QUALITY_BY_OUTCOME[grade]
    now = ensure_utc(now) if now is not None else utcnow()
    success = quality >= PASSING_QUALITY

    if not success:
        ease_factor = card.ease_factor
        repetitions = 0
        streak = 0
        interval = RELEARN_INTERVAL_DAYS
        state = CardState.NEW
    else:
        ease_factor = update_ease_factor(card.ease_factor, quality)
        repetitions = card.repetitions + 1
        streak = card.consecutive_successes + 1
        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
            state = CardState.LEARNING
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
            state = CardState.LEARNING
        else:
            interval = max(1, _round_half_up(card.interval * ease_factor))
            state = graduation_status(streak, interval)

    graduated_at = card.graduated_at
    if graduated_at is None and state == CardState.GRADUATED:
        graduated_at = now

    review_counts = dict(card.review_counts)
    review_counts[grade.value] = review_counts.get(grade.value, 0) + 1

    return ScheduleUpdate(
        state=state,
        interval=interval,
        ease_factor=ease_factor,
        repetitions=repetitions,
        consecutive_successes=streak,
        review_count=card.review_count + 1,
        success_count=card.success_count + (1 if success else 0),
        fail_count=card.fail_count + (0 if success else 1),
        review_counts=review_counts,
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=interval),
        graduated_at=graduated_at,
        outcome=grade,
        success=success,
    )


def apply_schedule(card: VocabularyCard, update: ScheduleUpdate) -> VocabularyCard:
    return card.model_copy(update=update.card_fields())
