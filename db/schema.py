# SQL schema for the wordcoach card store

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Vocabulary cards (one row per learner and word pair, with SM-2 fields)
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    learner_id TEXT NOT NULL,
    target_text TEXT NOT NULL,
    native_text TEXT NOT NULL,
    -- casefolded native_text; the word pair is (target_text, native_key)
    native_key TEXT NOT NULL,
    transliteration TEXT NOT NULL DEFAULT '',
    context JSON NOT NULL,
    lesson_id TEXT,
    level_id TEXT,
    state TEXT NOT NULL DEFAULT 'new' CHECK(state IN ('new', 'learning', 'graduated')),
    created_at TEXT NOT NULL,
    last_reviewed_at TEXT,
    graduated_at TEXT,
    next_review_at TEXT NOT NULL,
    review_count INTEGER NOT NULL DEFAULT 0 CHECK(review_count >= 0),
    success_count INTEGER NOT NULL DEFAULT 0 CHECK(success_count >= 0),
    fail_count INTEGER NOT NULL DEFAULT 0 CHECK(fail_count >= 0),
    consecutive_successes INTEGER NOT NULL DEFAULT 0,
    repetitions INTEGER NOT NULL DEFAULT 0,
    interval_days INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5 CHECK(ease_factor >= 1.3),
    review_counts JSON NOT NULL DEFAULT '{"again": 0, "hard": 0, "good": 0, "easy": 0}'
);

-- Review log
CREATE TABLE IF NOT EXISTS reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    card_id TEXT NOT NULL,
    learner_id TEXT NOT NULL,
    reviewed_at TEXT NOT NULL,
    outcome TEXT NOT NULL CHECK(outcome IN ('again', 'hard', 'good', 'easy')),
    success INTEGER NOT NULL,
    interval_days INTEGER NOT NULL,
    ease_factor REAL NOT NULL,
    FOREIGN KEY (card_id) REFERENCES cards (id) ON DELETE CASCADE
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_cards_learner ON cards (learner_id);
CREATE INDEX IF NOT EXISTS idx_cards_due ON cards (learner_id, state, next_review_at);
CREATE UNIQUE INDEX IF NOT EXISTS idx_cards_word_pair ON cards (learner_id, target_text, native_key);
CREATE INDEX IF NOT EXISTS idx_reviews_card ON reviews (card_id, reviewed_at);
CREATE INDEX IF NOT EXISTS idx_reviews_learner ON reviews (learner_id, reviewed_at);
"""
