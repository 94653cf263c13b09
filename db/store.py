"""
SQLite-backed card store: the durable side of the review flow.

Cards are independent aggregates, so every write touches a single row and the
last write wins.
"""
import json
import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from models.card import (
    CardState,
    ContextSentence,
    VocabularyCard,
    ensure_utc,
    utcnow,
)
from models.review import ReviewLogEntry, empty_review_counts
from utils.errors import CardNotFound, DuplicateCard
from utils.progress import replay_reviews

from . import database
from .database import get_conn, word_key

logger = logging.getLogger(__name__)


def _ts(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def _row_to_card(row: sqlite3.Row) -> VocabularyCard:
    return VocabularyCard(
        id=row["id"],
        learner_id=row["learner_id"],
        target_text=row["target_text"],
        native_text=row["native_text"],
        transliteration=row["transliteration"] or "",
        context_sentence=ContextSentence.model_validate(json.loads(row["context"])),
        lesson_id=row["lesson_id"],
        level_id=row["level_id"],
        state=CardState(row["state"]),
        created_at=row["created_at"],
        last_reviewed_at=row["last_reviewed_at"],
        graduated_at=row["graduated_at"],
        next_review_at=row["next_review_at"],
        review_count=row["review_count"],
        success_count=row["success_count"],
        fail_count=row["fail_count"],
        consecutive_successes=row["consecutive_successes"],
        repetitions=row["repetitions"],
        interval=row["interval_days"],
        ease_factor=row["ease_factor"],
        review_counts=json.loads(row["review_counts"] or "{}"),
    )


def _row_to_review(row: sqlite3.Row) -> ReviewLogEntry:
    return ReviewLogEntry(
        id=row["id"],
        card_id=row["card_id"],
        learner_id=row["learner_id"],
        reviewed_at=row["reviewed_at"],
        outcome=row["outcome"],
        success=bool(row["success"]),
        interval=row["interval_days"],
        ease_factor=row["ease_factor"],
    )


class CardStore:
    """Keyed card storage used by the review session and the HTTP layer."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path

    def load_all(self, learner_id: str) -> List[VocabularyCard]:
        with get_conn(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM cards WHERE learner_id = ? ORDER BY created_at DESC, id",
                (learner_id,),
            )
            return [_row_to_card(row) for row in cursor.fetchall()]

    def get(self, card_id: str) -> VocabularyCard:
        with get_conn(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM cards WHERE id = ?", (card_id,))
            row = cursor.fetchone()
        if not row:
            raise CardNotFound(card_id)
        return _row_to_card(row)

    def _find_by_words(self, conn, learner_id: str, target_text: str, native_text: str) -> Optional[str]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id FROM cards WHERE learner_id = ? AND target_text = ? AND native_key = ?",
            (learner_id, target_text.strip(), word_key(native_text)),
        )
        row = cursor.fetchone()
        return row["id"] if row else None

    def is_word_marked(self, learner_id: str, target_text: str, native_text: str) -> bool:
        with get_conn(self.db_path) as conn:
            return self._find_by_words(conn, learner_id, target_text, native_text) is not None

    def create(
        self,
        learner_id: str,
        target_text: str,
        native_text: str,
        transliteration: str,
        context_sentence: ContextSentence,
        lesson_id: Optional[str] = None,
        level_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> VocabularyCard:
        """Create a new card that is due immediately."""
        now = ensure_utc(now) if now is not None else utcnow()
        card = VocabularyCard(
            id=uuid.uuid4().hex,
            learner_id=learner_id,
            target_text=target_text.strip(),
            native_text=native_text.strip(),
            transliteration=(transliteration or "").strip(),
            context_sentence=context_sentence,
            lesson_id=lesson_id,
            level_id=level_id,
            created_at=now,
            next_review_at=now,
        )
        with get_conn(self.db_path) as conn:
            if self._find_by_words(conn, learner_id, card.target_text, card.native_text):
                raise DuplicateCard(card.target_text, card.native_text)
            try:
                conn.execute(
                    """
                    INSERT INTO cards (
                        id, learner_id, target_text, native_text, native_key, transliteration, context,
                        lesson_id, level_id, state, created_at, next_review_at,
                        interval_days, ease_factor, review_counts
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        card.id,
                        card.learner_id,
                        card.target_text,
                        card.native_text,
                        word_key(card.native_text),
                        card.transliteration,
                        card.context_sentence.model_dump_json(),
                        card.lesson_id,
                        card.level_id,
                        card.state.value,
                        _ts(card.created_at),
                        _ts(card.next_review_at),
                        card.interval,
                        card.ease_factor,
                        json.dumps(empty_review_counts()),
                    ),
                )
                conn.commit()
            except sqlite3.IntegrityError as exc:
                raise DuplicateCard(card.target_text, card.native_text) from exc
        logger.info("Created card %s for learner %s", card.id, learner_id)
        return card

    def save(self, card: VocabularyCard) -> None:
        """Write the scheduling fields of ``card``; raises CardNotFound if it is gone."""
        with get_conn(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE cards
                SET state = ?, last_reviewed_at = ?, graduated_at = ?, next_review_at = ?,
                    review_count = ?, success_count = ?, fail_count = ?,
                    consecutive_successes = ?, repetitions = ?, interval_days = ?,
                    ease_factor = ?, review_counts = ?
                WHERE id = ?
                """,
                (
                    card.state.value,
                    _ts(card.last_reviewed_at),
                    _ts(card.graduated_at),
                    _ts(card.next_review_at),
                    card.review_count,
                    card.success_count,
                    card.fail_count,
                    card.consecutive_successes,
                    card.repetitions,
                    card.interval,
                    card.ease_factor,
                    json.dumps(card.review_counts),
                    card.id,
                ),
            )
            if cursor.rowcount == 0:
                raise CardNotFound(card.id)
            conn.commit()

    def delete(self, card_id: str) -> None:
        with get_conn(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            if cursor.rowcount == 0:
                raise CardNotFound(card_id)
            conn.commit()

    def delete_by_words(self, learner_id: str, target_text: str, native_text: str) -> Optional[str]:
        """Delete the learner's card for a word pair, returning its id if one existed."""
        with get_conn(self.db_path) as conn:
            card_id = self._find_by_words(conn, learner_id, target_text, native_text)
            if card_id is None:
                return None
            conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            conn.commit()
        return card_id

    def add_review(self, entry: ReviewLogEntry) -> int:
        with get_conn(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO reviews (card_id, learner_id, reviewed_at, outcome, success, interval_days, ease_factor)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.card_id,
                    entry.learner_id,
                    _ts(entry.reviewed_at),
                    entry.outcome.value,
                    int(entry.success),
                    entry.interval,
                    entry.ease_factor,
                ),
            )
            conn.commit()
            return cursor.lastrowid

    def list_reviews(self, card_id: str) -> List[ReviewLogEntry]:
        with get_conn(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM reviews WHERE card_id = ? ORDER BY reviewed_at ASC, id ASC",
                (card_id,),
            )
            return [_row_to_review(row) for row in cursor.fetchall()]

    def rebuild_card(self, card_id: str) -> VocabularyCard:
        """Recompute a card from its review log and store the result."""
        card = replay_reviews(self.get(card_id), self.list_reviews(card_id))
        self.save(card)
        return card



def get_store() -> CardStore:
    """FastAPI dependency returning a store bound to the configured database."""
    return CardStore(database.DB_PATH)
