import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from config import get_config_value
from db.store import CardStore, get_store
from models.review import ReviewCreate
from models.session import SessionStatus, SessionView
from utils.errors import AlreadyReviewed, CardNotInQueue, InvalidOutcome, SessionStateError
from utils.session import ReviewSession

logger = logging.getLogger(__name__)

router = APIRouter()

# One active session per learner, kept in process memory.
_sessions: Dict[str, ReviewSession] = {}
# Final status of completed sessions whose writes have all landed.
_finished: Dict[str, SessionView] = {}
_persist_executor: Optional[ThreadPoolExecutor] = None


def get_persist_executor() -> ThreadPoolExecutor:
    global _persist_executor
    if _persist_executor is None:
        _persist_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="wordcoach-persist")
    return _persist_executor


def evict_if_settled(learner_id: str) -> None:
    """Drop a completed session once its writes are done, keeping only its final view."""
    session = _sessions.get(learner_id)
    if session is None or session.status != SessionStatus.COMPLETED or session.has_pending:
        return
    _finished[learner_id] = session.view()
    del _sessions[learner_id]
    logger.debug("Evicted completed session for learner %s", learner_id)


def get_session(learner_id: str) -> ReviewSession:
    session = _sessions.get(learner_id)
    if session is None:
        if learner_id in _finished:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Review session already completed")
        raise HTTPException(status_code=404, detail="No review session for learner")
    return session


def shutdown_sessions() -> None:
    """Drain outstanding writes; called when the app stops."""
    global _persist_executor
    for session in _sessions.values():
        session.wait_for_pending()
    _sessions.clear()
    _finished.clear()
    if _persist_executor is not None:
        _persist_executor.shutdown(wait=True)
        _persist_executor = None


@router.post("/{learner_id}/session", response_model=SessionView)
def start_session(learner_id: str, store: CardStore = Depends(get_store)):
    """Snapshot the due queue and start a new session, abandoning any previous one."""
    _finished.pop(learner_id, None)
    previous = _sessions.pop(learner_id, None)
    if previous is not None:
        # The new snapshot must see the previous session's writes.
        previous.wait_for_pending()
        logger.info("Learner %s abandoned a session with %d card(s) left", learner_id, previous.remaining)
    session = ReviewSession(
        learner_id,
        store.load_all(learner_id),
        store,
        executor=get_persist_executor(),
        max_cards=get_config_value("session", "max_cards"),
    )
    session.start()
    _sessions[learner_id] = session
    view = session.view()
    evict_if_settled(learner_id)
    return view


@router.get("/{learner_id}/session", response_model=SessionView)
async def session_status(learner_id: str):
    evict_if_settled(learner_id)
    if learner_id in _finished:
        return _finished[learner_id]
    return get_session(learner_id).view()


@router.post("/{learner_id}/session/review", response_model=SessionView)
async def submit_review(learner_id: str, payload: ReviewCreate):
    """Grade the current card and advance the session."""
    session = get_session(learner_id)
    try:
        session.submit(payload.outcome, payload.card_id)
    except InvalidOutcome as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except (AlreadyReviewed, CardNotInQueue, SessionStateError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    view = session.view()
    evict_if_settled(learner_id)
    return view
