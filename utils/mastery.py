from models.card import CardState

GRADUATION_MIN_STREAK = 3
GRADUATION_MIN_INTERVAL_DAYS = 21


def graduation_status(consecutive_successes: int, interval_days: int) -> CardState:
    """State after a successful review: graduated needs both a streak and spacing."""
    if (
        consecutive_successes >= GRADUATION_MIN_STREAK
        and interval_days >= GRADUATION_MIN_INTERVAL_DAYS
    ):
        return CardState.GRADUATED
    return CardState.LEARNING


def mastery_percent(graduated: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round((graduated / total) * 100, 1)
