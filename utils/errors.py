"""
Exceptions raised by the scheduling core and the card store.
"""


class WordcoachError(Exception):
    """Base exception for all wordcoach errors."""
    pass


class InvalidOutcome(WordcoachError, ValueError):
    """Raised when a review outcome is not one of again/hard/good/easy."""

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(f"Invalid review outcome: {outcome!r}")


class AlreadyReviewed(WordcoachError):
    """Raised when a card is submitted twice within one session."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card {card_id} was already reviewed in this session")


class CardNotInQueue(WordcoachError):
    """Raised when a submission names a card that is not the current one."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card {card_id} is not the current card of this session")


class SessionStateError(WordcoachError):
    """Raised when a session operation is not valid in the current state."""
    pass


class PersistenceFailure(WordcoachError):
    """A card store write that did not complete."""

    def __init__(self, card_id: str, cause: BaseException):
        self.card_id = card_id
        self.cause = cause
        super().__init__(f"Failed to persist card {card_id}: {cause}")


class DuplicateCard(WordcoachError):
    """Raised when a learner already has a card for the same word pair."""

    def __init__(self, target_text: str, native_text: str):
        self.target_text = target_text
        self.native_text = native_text
        super().__init__(f"Card already exists for {target_text!r} / {native_text!r}")


class CardNotFound(WordcoachError):
    """Raised when a card id is unknown to the store."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card not found: {card_id}")
