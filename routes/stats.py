from fastapi import APIRouter, Depends

from db.store import CardStore, get_store
from models.card import utcnow
from models.stats import StatsResponse
from utils.stats import active_vocabulary, compute_vocabulary_stats

router = APIRouter()


@router.get("/{learner_id}/stats", response_model=StatsResponse)
async def learner_stats(learner_id: str, store: CardStore = Depends(get_store)):
    """Collection counts and the learner's graduated (active) vocabulary."""
    cards = store.load_all(learner_id)
    return StatsResponse(
        stats=compute_vocabulary_stats(cards, utcnow()),
        active_vocabulary=active_vocabulary(cards),
    )
