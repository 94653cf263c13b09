"""
Review session controller.

A session works on a snapshot of the due queue taken when it starts: cards
reviewed during the session never re-enter it, even when their next review is
still today. Each review is applied in memory first and then handed to a
background executor for persistence; a failed write is recorded and logged
but never undoes the review.
"""
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from models.card import CardState, VocabularyCard, ensure_utc, utcnow
from models.review import Outcome, ReviewLogEntry
from models.session import SessionStats, SessionStatus, SessionView
from utils.due import count_due, select_due
from utils.errors import AlreadyReviewed, CardNotInQueue, PersistenceFailure, SessionStateError
from utils.sm2 import ScheduleUpdate, apply_schedule, compute_next_schedule

logger = logging.getLogger(__name__)


class ReviewSession:
    def __init__(
        self,
        learner_id: str,
        cards: Iterable[VocabularyCard],
        store,
        executor: Optional[Executor] = None,
        max_cards: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
        on_persist_error: Optional[Callable[[PersistenceFailure], None]] = None,
    ):
        self.learner_id = learner_id
        self.max_cards = max_cards
        self.status = SessionStatus.IDLE
        self.stats = SessionStats()
        self.persistence_failures: List[PersistenceFailure] = []
        self._cards: Dict[str, VocabularyCard] = {card.id: card for card in cards}
        self._store = store
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="wordcoach-persist")
        self._clock = clock
        self._on_persist_error = on_persist_error
        self._queue: List[str] = []
        self._position = 0
        self._reviewed: Set[str] = set()
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def get_card(self, card_id: str) -> Optional[VocabularyCard]:
        return self._cards.get(card_id)

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def remaining(self) -> int:
        return len(self._queue) - self._position

    @property
    def current_card(self) -> Optional[VocabularyCard]:
        if self.status != SessionStatus.IN_PROGRESS:
            return None
        return self._cards[self._queue[self._position]]

    def start(self, now: Optional[datetime] = None) -> "ReviewSession":
        if self.status != SessionStatus.IDLE:
            raise SessionStateError(f"Session already {self.status.value}")
        now = self._now(now)
        snapshot = select_due(self._cards.values(), now, limit=self.max_cards)
        self._queue = [card.id for card in snapshot]
        self.status = SessionStatus.IN_PROGRESS
        logger.info("Learner %s started a session with %d due card(s)", self.learner_id, len(self._queue))
        if not self._queue:
            self._complete(now)
        return self

    def submit(
        self,
        outcome: Union[Outcome, str],
        card_id: str,
        now: Optional[datetime] = None,
    ) -> VocabularyCard:
        """Review the current card, named by ``card_id``, and advance; returns the updated card."""
        if card_id in self._reviewed:
            raise AlreadyReviewed(card_id)
        if self.status != SessionStatus.IN_PROGRESS:
            raise SessionStateError(f"Cannot submit a review while {self.status.value}")
        current = self.current_card
        if card_id != current.id:
            raise CardNotInQueue(card_id)

        now = self._now(now)
        update = compute_next_schedule(current, outcome, now)
        updated = apply_schedule(current, update)
        self._cards[updated.id] = updated
        self._reviewed.add(updated.id)
        self._position += 1
        self._tally(current, update)
        self._persist(updated, update)

        if self._position >= len(self._queue):
            self._complete(now)
        return updated

    def view(self) -> SessionView:
        with self._lock:
            failures = len(self.persistence_failures)
        return SessionView(
            status=self.status,
            queue_size=self.queue_size,
            remaining=self.remaining,
            current_card=self.current_card,
            stats=self.stats,
            persistence_failures=failures,
        )

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return any(not future.done() for future in self._pending)

    def wait_for_pending(self, timeout: Optional[float] = None) -> None:
        """Block until queued writes finish; failures stay in persistence_failures."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _now(self, now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now is not None else self._clock()

    def _tally(self, previous: VocabularyCard, update: ScheduleUpdate) -> None:
        stats = self.stats
        stats.reviewed += 1
        setattr(stats, update.outcome.value, getattr(stats, update.outcome.value) + 1)
        if update.state == CardState.GRADUATED and previous.state != CardState.GRADUATED:
            stats.newly_graduated += 1

    def _persist(self, card: VocabularyCard, update: ScheduleUpdate) -> None:
        entry = ReviewLogEntry(
            card_id=card.id,
            learner_id=card.learner_id,
            reviewed_at=update.last_reviewed_at,
            outcome=update.outcome,
            success=update.success,
            interval=update.interval,
            ease_factor=update.ease_factor,
        )
        try:
            future = self._executor.submit(self._write, card, entry)
        except RuntimeError as exc:
            # Executor already shut down.
            self._record_failure(PersistenceFailure(card.id, exc))
            return
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def _write(self, card: VocabularyCard, entry: ReviewLogEntry) -> None:
        try:
            self._store.save(card)
            self._store.add_review(entry)
        except Exception as exc:
            self._record_failure(PersistenceFailure(card.id, exc))

    def _record_failure(self, failure: PersistenceFailure) -> None:
        logger.warning("%s", failure)
        with self._lock:
            self.persistence_failures.append(failure)
        if self._on_persist_error is not None:
            self._on_persist_error(failure)

    def _complete(self, now: datetime) -> None:
        cards = list(self._cards.values())
        self.stats.total_cards = len(cards)
        self.stats.graduated_count = sum(1 for card in cards if card.state == CardState.GRADUATED)
        self.stats.due_count = count_due(cards, now)
        self.status = SessionStatus.COMPLETED
        logger.info(
            "Learner %s completed a session: %d reviewed, %d graduated, %d still due",
            self.learner_id,
            self.stats.reviewed,
            self.stats.graduated_count,
            self.stats.due_count,
        )
