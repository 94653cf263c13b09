import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from db.database import get_conn, get_schema_version, init_db
from db.schema import SCHEMA_SQL, SCHEMA_VERSION
from db.store import CardStore
from models.card import CardState, ContextSentence, MarkKind, SentenceMark
from models.review import Outcome, ReviewLogEntry
from utils.errors import CardNotFound, DuplicateCard
from utils.sm2 import apply_schedule, compute_next_schedule

NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)

CONTEXT = ContextSentence(
    target="این خانه بزرگ است",
    transliteration="in xāne bozorg ast",
    decoded="dieses Haus groß ist",
    translation="Dieses Haus ist groß.",
    mark=SentenceMark(token_ids=["s3-t1", "s3-t2"], sentence_id=3, kind=MarkKind.GROUP),
)


@pytest.fixture
def store(tmp_path):
    db_path = tmp_path / "wordcoach.db"
    init_db(db_path)
    return CardStore(db_path)


def test_init_db_writes_schema_version(tmp_path):
    db_path = tmp_path / "nested" / "wordcoach.db"
    init_db(db_path)
    with get_conn(db_path) as conn:
        assert get_schema_version(conn) == SCHEMA_VERSION


def test_create_card_is_new_and_due_immediately(store):
    card = store.create("learner-1", " خانه ", "Haus", "xāne", CONTEXT, lesson_id="l1", level_id="a1", now=NOW)
    assert card.target_text == "خانه"
    assert card.state == CardState.NEW
    assert card.next_review_at == NOW
    assert card.created_at == NOW
    assert card.is_due(NOW)

    loaded = store.get(card.id)
    assert loaded == card
    assert loaded.context_sentence.mark.token_ids == ["s3-t1", "s3-t2"]
    assert loaded.lesson_id == "l1"


def test_duplicate_word_pair_is_rejected(store):
    store.create("learner-1", "خانه", "Haus", "", CONTEXT, now=NOW)
    with pytest.raises(DuplicateCard):
        store.create("learner-1", "خانه", "haus", "", CONTEXT, now=NOW)
    # a different learner, or a different meaning, is fine
    store.create("learner-2", "خانه", "Haus", "", CONTEXT, now=NOW)
    store.create("learner-1", "خانه", "Heim", "", CONTEXT, now=NOW)
    assert len(store.load_all("learner-1")) == 2
    assert store.is_word_marked("learner-1", "خانه", "HAUS")
    assert not store.is_word_marked("learner-1", "خانه", "Gebäude")


def test_target_text_is_compared_exactly(store):
    store.create("learner-1", "Haus", "house", "", CONTEXT, now=NOW)
    store.create("learner-1", "haus", "house", "", CONTEXT, now=NOW)
    assert len(store.load_all("learner-1")) == 2


def test_native_key_folds_beyond_ascii(store):
    store.create("learner-1", "خیابان", "Straße", "", CONTEXT, now=NOW)
    with pytest.raises(DuplicateCard):
        store.create("learner-1", "خیابان", "STRASSE", "", CONTEXT, now=NOW)
    with pytest.raises(sqlite3.IntegrityError):
        # straight to the index, skipping the lookup in create()
        with get_conn(store.db_path) as conn:
            conn.execute(
                "INSERT INTO cards (id, learner_id, target_text, native_text, native_key, context, created_at, next_review_at) "
                "VALUES ('x', 'learner-1', 'خیابان', 'strasse', 'strasse', '{}', '', '')"
            )


def test_init_db_backfills_native_key(tmp_path):
    db_path = tmp_path / "wordcoach.db"
    old_schema = SCHEMA_SQL.replace("    -- casefolded native_text; the word pair is (target_text, native_key)\n    native_key TEXT NOT NULL,\n", "")
    with get_conn(db_path) as conn:
        conn.executescript(old_schema)
        conn.execute(
            "INSERT INTO cards (id, learner_id, target_text, native_text, context, created_at, next_review_at) "
            "VALUES ('old', 'learner-1', 'خانه', ' Haus ', '{}', '', '')"
        )
        conn.commit()
    init_db(db_path)
    store = CardStore(db_path)
    assert store.is_word_marked("learner-1", "خانه", "haus")
    with pytest.raises(DuplicateCard):
        store.create("learner-1", "خانه", "HAUS", "", CONTEXT, now=NOW)
    with get_conn(db_path) as conn:
        assert get_schema_version(conn) == SCHEMA_VERSION


def test_load_all_is_scoped_to_learner(store):
    first = store.create("learner-1", "a", "A", "", CONTEXT, now=NOW)
    second = store.create("learner-1", "b", "B", "", CONTEXT, now=NOW + timedelta(minutes=1))
    store.create("learner-2", "c", "C", "", CONTEXT, now=NOW)
    cards = store.load_all("learner-1")
    assert [card.id for card in cards] == [second.id, first.id]


def test_save_round_trips_scheduling_fields(store):
    card = store.create("learner-1", "کتاب", "Buch", "ketāb", CONTEXT, now=NOW)
    for outcome in (Outcome.GOOD, Outcome.GOOD, Outcome.EASY):
        card = apply_schedule(card, compute_next_schedule(card, outcome, NOW))
    store.save(card)
    loaded = store.get(card.id)
    assert loaded.state == CardState.LEARNING
    assert loaded.repetitions == 3
    assert loaded.interval == card.interval
    assert loaded.ease_factor == pytest.approx(card.ease_factor)
    assert loaded.review_counts == {"again": 0, "hard": 0, "good": 2, "easy": 1}
    assert loaded.next_review_at == card.next_review_at
    assert loaded.last_reviewed_at == NOW


def test_save_unknown_card_fails(store):
    card = store.create("learner-1", "a", "A", "", CONTEXT, now=NOW)
    store.delete(card.id)
    with pytest.raises(CardNotFound):
        store.save(card)
    with pytest.raises(CardNotFound):
        store.get(card.id)
    with pytest.raises(CardNotFound):
        store.delete(card.id)


def test_delete_by_words(store):
    card = store.create("learner-1", "درخت", "Baum", "", CONTEXT, now=NOW)
    assert store.delete_by_words("learner-1", "درخت", "baum") == card.id
    assert store.delete_by_words("learner-1", "درخت", "baum") is None
    assert store.load_all("learner-1") == []


def test_rebuild_card_replays_review_log(store):
    card = store.create("learner-1", "آب", "Wasser", "āb", CONTEXT, now=NOW)
    when = NOW
    for outcome in (Outcome.GOOD, Outcome.AGAIN, Outcome.GOOD, Outcome.GOOD):
        update = compute_next_schedule(card, outcome, when)
        card = apply_schedule(card, update)
        store.add_review(
            ReviewLogEntry(
                card_id=card.id,
                learner_id="learner-1",
                reviewed_at=when,
                outcome=update.outcome,
                success=update.success,
                interval=update.interval,
                ease_factor=update.ease_factor,
            )
        )
        when = card.next_review_at
    # the card row itself was never saved; rebuilding must recover it from the log
    rebuilt = store.rebuild_card(card.id)
    assert rebuilt.review_count == 4
    assert rebuilt.fail_count == 1
    assert rebuilt.repetitions == 2
    assert rebuilt.interval == 6
    assert rebuilt.state == CardState.LEARNING
    assert store.get(card.id) == rebuilt
    assert len(store.list_reviews(card.id)) == 4


def test_deleting_card_removes_its_reviews(store):
    card = store.create("learner-1", "a", "A", "", CONTEXT, now=NOW)
    store.add_review(
        ReviewLogEntry(
            card_id=card.id,
            learner_id="learner-1",
            reviewed_at=NOW,
            outcome=Outcome.GOOD,
            success=True,
            interval=1,
            ease_factor=2.5,
        )
    )
    store.delete(card.id)
    assert store.list_reviews(card.id) == []
