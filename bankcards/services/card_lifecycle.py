"""
Card lifecycle: the only code allowed to change Card.status.

Transition table:

    ACTIVE  ──block────> BLOCKED
    BLOCKED ──activate─> ACTIVE
    EXPIRED  (terminal: no transitions in or out through this module)

block() and activate() operate on an already-loaded Card and only mutate it.
Loading, locking and flushing belong to the caller (card_service).
"""

from bankcards.exceptions import CardAlreadyActiveError, CardAlreadyBlockedError, CardExpiredError
from bankcards.models.card import Card, CardStatus

TRANSITIONS: dict[CardStatus, frozenset[CardStatus]] = {
    CardStatus.ACTIVE: frozenset({CardStatus.BLOCKED}),
    CardStatus.BLOCKED: frozenset({CardStatus.ACTIVE}),
    CardStatus.EXPIRED: frozenset(),
}


def can_transition(current: CardStatus, target: CardStatus) -> bool:
    return target in TRANSITIONS[current]


def block(card: Card) -> Card:
    """
    Move a card to BLOCKED.

    Raises:
        CardAlreadyBlockedError: If the card is already BLOCKED.
        CardExpiredError: If the card is EXPIRED.
    """
    if card.status == CardStatus.BLOCKED:
        raise CardAlreadyBlockedError(card.id)
    if not can_transition(card.status, CardStatus.BLOCKED):
        raise CardExpiredError(card.id)
    card.status = CardStatus.BLOCKED
    return card


def activate(card: Card) -> Card:
    """
    Move a card to ACTIVE.

    Raises:
        CardAlreadyActiveError: If the card is already ACTIVE.
        CardExpiredError: If the card is EXPIRED.
    """
    if card.status == CardStatus.ACTIVE:
        raise CardAlreadyActiveError(card.id)
    if not can_transition(card.status, CardStatus.ACTIVE):
        raise CardExpiredError(card.id)
    card.status = CardStatus.ACTIVE
    return card
