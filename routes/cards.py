from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from db.store import CardStore, get_store
from models.card import CardState, VocabularyCard, VocabularyCardCreate, utcnow
from utils.due import select_due
from utils.errors import CardNotFound, DuplicateCard

router = APIRouter()


def get_learner_card(store: CardStore, learner_id: str, card_id: str) -> VocabularyCard:
    try:
        card = store.get(card_id)
    except CardNotFound:
        raise HTTPException(status_code=404, detail="Card not found")
    if card.learner_id != learner_id:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.post("/{learner_id}/cards", response_model=VocabularyCard, status_code=status.HTTP_201_CREATED)
async def create_card(learner_id: str, payload: VocabularyCardCreate, store: CardStore = Depends(get_store)):
    """Mark a word (or word group) from a lesson sentence for review."""
    try:
        return store.create(
            learner_id,
            payload.target_text,
            payload.native_text,
            payload.transliteration,
            payload.context_sentence,
            lesson_id=payload.lesson_id,
            level_id=payload.level_id,
        )
    except DuplicateCard as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.get("/{learner_id}/cards", response_model=List[VocabularyCard])
async def list_cards(learner_id: str, state: Optional[CardState] = None, store: CardStore = Depends(get_store)):
    cards = store.load_all(learner_id)
    if state is not None:
        cards = [card for card in cards if card.state == state]
    return cards


@router.delete("/{learner_id}/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(learner_id: str, card_id: str, store: CardStore = Depends(get_store)):
    get_learner_card(store, learner_id, card_id)
    store.delete(card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{learner_id}/cards/{card_id}/rebuild", response_model=VocabularyCard)
async def rebuild_card(learner_id: str, card_id: str, store: CardStore = Depends(get_store)):
    """Recompute a card's schedule from its review log."""
    get_learner_card(store, learner_id, card_id)
    return store.rebuild_card(card_id)


@router.get("/{learner_id}/due", response_model=List[VocabularyCard])
async def due_cards(learner_id: str, store: CardStore = Depends(get_store)):
    return select_due(store.load_all(learner_id), utcnow())
