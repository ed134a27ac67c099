"""
Tests for the HTTP surface that are not tied to one feature.

These tests verify:
  - The health check
  - Error bodies always have the {"detail", "error_type"} shape
  - Cipher failures and unexpected exceptions produce an opaque 500
  - Logging setup supports text and JSON output without stacking handlers
"""

import json
import logging

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update

from bankcards.exceptions import INTERNAL_ERROR_DETAIL, register_exception_handlers
from bankcards.logging_config import JSONFormatter, setup_logging
from bankcards.models.card import Card


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestErrorBodies:

    async def test_tampered_card_number_is_opaque_500(
        self, client, db_session, cardholder_headers, issued_cards,
    ):
        await db_session.execute(
            update(Card)
            .where(Card.id == issued_cards[0].id)
            .values(card_number_encrypted="AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA")
        )
        await db_session.commit()

        response = await client.get("/cards", headers=cardholder_headers)

        assert response.status_code == 500
        assert response.json() == {
            "detail": INTERNAL_ERROR_DETAIL,
            "error_type": "internal_error",
        }

    async def test_unexpected_exception_is_opaque_500(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret internal detail")

        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            response = await ac.get("/boom")

        assert response.status_code == 500
        assert "secret" not in response.text
        assert response.json()["error_type"] == "internal_error"

    async def test_foreign_card_history_is_forbidden(
        self, client, other_cardholder_headers, issued_cards,
    ):
        response = await client.get(
            f"/cards/{issued_cards[0].id}/transfers", headers=other_cardholder_headers,
        )
        assert response.status_code == 403
        assert set(response.json()) == {"detail", "error_type"}

    async def test_my_balance(self, client, cardholder_headers, issued_cards):
        response = await client.get("/cards/balance", headers=cardholder_headers)
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "ivan"
        assert response.json()["total_balance"] == 20_000


class TestLogging:

    def test_json_formatter(self):
        record = logging.LogRecord(
            "bankcards.services.ledger", logging.INFO, __file__, 1,
            "Transfer %s done", ("t-1",), None,
        )
        record.card_id = "c-1"

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "Transfer t-1 done"
        assert payload["level"] == "INFO"
        assert payload["card_id"] == "c-1"

    def test_setup_does_not_stack_handlers(self):
        root = logging.getLogger()
        level = root.level
        try:
            setup_logging("DEBUG", "json")
            setup_logging("INFO", "text")

            ours = [h for h in root.handlers if getattr(h, "_bankcards_handler", False)]
            assert len(ours) == 1
            assert not isinstance(ours[0].formatter, JSONFormatter)
            assert root.level == logging.INFO
        finally:
            for handler in list(root.handlers):
                if getattr(handler, "_bankcards_handler", False):
                    root.removeHandler(handler)
            root.setLevel(level)
