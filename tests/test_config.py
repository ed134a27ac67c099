"""
Tests for configuration validation, money conversion and paging input.

These tests verify:
  - A malformed CARD_ENCRYPTION_KEY fails validation at construction
  - Rouble amounts convert to kopecks exactly, with at most two decimals
  - Paging input is validated against a sort-field whitelist
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from bankcards.config import Settings
from bankcards.exceptions import InvalidArgumentError
from bankcards.money import to_kopecks, to_rubles
from bankcards.paging import MAX_PAGE_SIZE, page_params

VALID_KEY = "ab" * 32


def build_settings(**overrides):
    values = {"SECRET_KEY": "secret", "CARD_ENCRYPTION_KEY": VALID_KEY}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:

    def test_valid_key(self):
        settings = build_settings()
        assert settings.card_encryption_key_bytes == bytes.fromhex(VALID_KEY)

    @pytest.mark.parametrize("key", ["not-hex", "ab" * 16, "ab" * 33, ""])
    def test_malformed_key(self, key):
        with pytest.raises(ValidationError):
            build_settings(CARD_ENCRYPTION_KEY=key)

    def test_unknown_log_format(self):
        with pytest.raises(ValidationError):
            build_settings(LOG_FORMAT="xml")

    def test_defaults(self):
        settings = build_settings()
        assert settings.CARD_OPENING_BALANCE_KOPECKS == 1_000_000
        assert settings.CARD_VALIDITY_YEARS == 5
        assert settings.TRANSFER_CURRENCY == "RUB"


class TestMoney:

    @pytest.mark.parametrize(
        "amount, kopecks",
        [(Decimal("10.50"), 1050), (Decimal("0.01"), 1), ("1000", 100_000), (7, 700)],
    )
    def test_to_kopecks(self, amount, kopecks):
        assert to_kopecks(amount) == kopecks

    @pytest.mark.parametrize("amount", [Decimal("1.005"), "abc", "NaN"])
    def test_rejects_bad_amounts(self, amount):
        with pytest.raises(InvalidArgumentError):
            to_kopecks(amount)

    def test_to_rubles(self):
        assert to_rubles(1050) == 10.5
        assert to_rubles(0) == 0.0


class TestPageParams:

    ALLOWED = ("id", "created_at")

    def test_valid(self):
        params = page_params(2, 20, "created_at", "DESC", self.ALLOWED)
        assert (params.page, params.size, params.sort_by, params.sort_dir) == (2, 20, "created_at", "desc")

    def test_unknown_sort_field(self):
        with pytest.raises(InvalidArgumentError):
            page_params(0, 10, "hashed_password", "asc", self.ALLOWED)

    def test_unknown_direction(self):
        with pytest.raises(InvalidArgumentError):
            page_params(0, 10, "id", "sideways", self.ALLOWED)

    @pytest.mark.parametrize("page, size", [(-1, 10), (0, 0), (0, MAX_PAGE_SIZE + 1)])
    def test_out_of_range(self, page, size):
        with pytest.raises(InvalidArgumentError):
            page_params(page, size, "id", "asc", self.ALLOWED)
