from datetime import datetime, timedelta, timezone

from models.card import CardState, ContextSentence, VocabularyCard
from utils.due import count_due, select_due

NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


def _card(card_id: str, state: CardState = CardState.LEARNING, due_in_hours: float = -1) -> VocabularyCard:
    return VocabularyCard(
        id=card_id,
        learner_id="learner-1",
        target_text=f"word-{card_id}",
        native_text=f"Wort-{card_id}",
        context_sentence=ContextSentence(target=f"sentence with word-{card_id}"),
        state=state,
        created_at=NOW - timedelta(days=10),
        next_review_at=NOW + timedelta(hours=due_in_hours),
    )


def test_graduated_and_future_cards_are_not_due():
    cards = [
        _card("a", state=CardState.GRADUATED, due_in_hours=-48),
        _card("b", state=CardState.LEARNING, due_in_hours=2),
    ]
    assert select_due(cards, NOW) == []
    assert count_due(cards, NOW) == 0


def test_most_overdue_first_with_id_tiebreak():
    cards = [
        _card("c", due_in_hours=-1),
        _card("b", due_in_hours=-1),
        _card("z", state=CardState.NEW, due_in_hours=-30),
        _card("a", due_in_hours=0),
        _card("g", state=CardState.GRADUATED, due_in_hours=-100),
    ]
    queue = select_due(cards, NOW)
    assert [card.id for card in queue] == ["z", "b", "c", "a"]
    assert all(card.state != CardState.GRADUATED for card in queue)


def test_card_due_exactly_now_is_included():
    card = _card("a", due_in_hours=0)
    assert card.is_due(NOW)
    assert select_due([card], NOW) == [card]


def test_limit_bounds_the_queue():
    cards = [_card(str(i), due_in_hours=-i) for i in range(1, 6)]
    queue = select_due(cards, NOW, limit=2)
    assert [card.id for card in queue] == ["5", "4"]
    assert select_due(cards, NOW, limit=0) == []


def test_naive_now_is_treated_as_utc():
    card = _card("a", due_in_hours=-1)
    assert select_due([card], NOW.replace(tzinfo=None)) == [card]
