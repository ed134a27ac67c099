"""
Tests for card status transitions (block / activate).

These tests verify:
  - ACTIVE -> BLOCKED and BLOCKED -> ACTIVE are the only transitions
  - Blocking a blocked card / activating an active card is rejected
  - EXPIRED is terminal
  - The same rules hold through card_service and the admin endpoints
"""

import uuid

import pytest

from bankcards.exceptions import (
    CardAlreadyActiveError,
    CardAlreadyBlockedError,
    CardExpiredError,
    CardNotFoundError,
)
from bankcards.models.card import Card, CardStatus
from bankcards.services import card_lifecycle, card_service

from conftest import reload_card


def make_card(status: CardStatus) -> Card:
    return Card(id=uuid.uuid4(), status=status)


class TestTransitionTable:

    def test_allowed_transitions(self):
        assert card_lifecycle.can_transition(CardStatus.ACTIVE, CardStatus.BLOCKED)
        assert card_lifecycle.can_transition(CardStatus.BLOCKED, CardStatus.ACTIVE)

    def test_expired_is_terminal(self):
        for target in CardStatus:
            assert not card_lifecycle.can_transition(CardStatus.EXPIRED, target)
            assert not card_lifecycle.can_transition(target, CardStatus.EXPIRED)


class TestBlock:

    def test_block_active_card(self):
        card = card_lifecycle.block(make_card(CardStatus.ACTIVE))
        assert card.status == CardStatus.BLOCKED

    def test_block_blocked_card(self):
        with pytest.raises(CardAlreadyBlockedError) as exc_info:
            card_lifecycle.block(make_card(CardStatus.BLOCKED))
        assert exc_info.value.detail == "Card already blocked"

    def test_block_expired_card(self):
        card = make_card(CardStatus.EXPIRED)
        with pytest.raises(CardExpiredError):
            card_lifecycle.block(card)
        assert card.status == CardStatus.EXPIRED


class TestActivate:

    def test_activate_blocked_card(self):
        card = card_lifecycle.activate(make_card(CardStatus.BLOCKED))
        assert card.status == CardStatus.ACTIVE

    def test_activate_active_card(self):
        with pytest.raises(CardAlreadyActiveError) as exc_info:
            card_lifecycle.activate(make_card(CardStatus.ACTIVE))
        assert exc_info.value.detail == "Card already active"

    def test_activate_expired_card(self):
        with pytest.raises(CardExpiredError):
            card_lifecycle.activate(make_card(CardStatus.EXPIRED))


class TestCardServiceStatusChanges:
    """Status changes persisted through card_service."""

    async def test_block_then_activate(self, db_session, issued_cards):
        card_id = issued_cards[0].id

        await card_service.block_card(db_session, card_id)
        await db_session.commit()
        assert (await reload_card(db_session, card_id)).status == CardStatus.BLOCKED

        await card_service.activate_card(db_session, card_id)
        await db_session.commit()
        assert (await reload_card(db_session, card_id)).status == CardStatus.ACTIVE

    async def test_block_twice(self, db_session, issued_cards):
        card_id = issued_cards[0].id
        await card_service.block_card(db_session, card_id)

        with pytest.raises(CardAlreadyBlockedError):
            await card_service.block_card(db_session, card_id)

    async def test_missing_card(self, db_session):
        with pytest.raises(CardNotFoundError):
            await card_service.block_card(db_session, uuid.uuid4())
        with pytest.raises(CardNotFoundError):
            await card_service.activate_card(db_session, uuid.uuid4())

    async def test_status_change_bumps_version(self, db_session, issued_cards):
        card = issued_cards[0]
        before = card.version

        await card_service.block_card(db_session, card.id)
        assert card.version == before + 1


class TestAdminStatusEndpoints:

    async def test_block_and_activate(self, client, admin_headers, issued_cards):
        card_id = issued_cards[0].id

        response = await client.patch(f"/admin/cards/{card_id}/block", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "BLOCKED"

        response = await client.patch(f"/admin/cards/{card_id}/activate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "ACTIVE"

    async def test_block_blocked_card_is_conflict(self, client, admin_headers, issued_cards):
        card_id = issued_cards[0].id
        await client.patch(f"/admin/cards/{card_id}/block", headers=admin_headers)

        response = await client.patch(f"/admin/cards/{card_id}/block", headers=admin_headers)
        assert response.status_code == 409
        assert response.json() == {
            "detail": "Card already blocked",
            "error_type": "card_already_blocked",
        }

    async def test_activate_active_card_is_conflict(self, client, admin_headers, issued_cards):
        response = await client.patch(
            f"/admin/cards/{issued_cards[0].id}/activate", headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "card_already_active"

    async def test_unknown_card_is_not_found(self, client, admin_headers):
        response = await client.patch(f"/admin/cards/{uuid.uuid4()}/block", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error_type"] == "card_not_found"
