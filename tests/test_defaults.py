"""Tests for token creation defaults."""

import pytest

from opchat.chat.actions import ActionKind, BlockchainAction, build_action
from opchat.chat.defaults import (
    DEFAULT_SUPPLY,
    apply_token_defaults,
    generate_token_symbol,
    smart_total_supply,
)


class TestGenerateTokenSymbol:
    """Tests for ticker derivation."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Dragon Quest Token", "DRQU"),
            ("Moon", "MOON"),
            ("Super Fast Rocket Ship", "SFRS"),
            ("Token", "TKN"),
            ("Go", "GON"),
            ("X-Men Coin", "XMEN"),
        ],
    )
    def test_symbols(self, name, expected):
        assert generate_token_symbol(name) == expected

    def test_length_bounds(self):
        for name in ["A", "Alpha Beta Gamma Delta Epsilon", "Very Long Name Here"]:
            assert 3 <= len(generate_token_symbol(name)) <= 4

    def test_deterministic(self):
        assert generate_token_symbol("Pixel Farm") == generate_token_symbol("Pixel Farm")


class TestSmartTotalSupply:
    """Tests for supply selection from name keywords."""

    def test_gaming(self):
        assert smart_total_supply("Dragon Quest") == "1000000000"

    def test_meme(self):
        assert smart_total_supply("Pepe Moon") == "1000000000000"

    def test_governance(self):
        assert smart_total_supply("Council Vote") == "10000000"

    def test_utility(self):
        assert smart_total_supply("Platform Credits") == "100000000"

    def test_default(self):
        assert smart_total_supply("Acme") == str(DEFAULT_SUPPLY)


class TestApplyTokenDefaults:
    """Tests for filling token details from the name."""

    def test_fills_everything_from_name(self):
        action = BlockchainAction(kind=ActionKind.CREATE_TOKEN, details={"name": "Dragon Quest"})
        apply_token_defaults(action)
        assert action.details["symbol"] == "DRQU"
        assert action.details["totalSupply"] == "1000000000"
        assert action.details["decimals"] == "18"
        assert action.refresh_completeness().is_complete

    def test_keeps_user_values(self):
        action = BlockchainAction(
            kind=ActionKind.CREATE_TOKEN,
            details={"name": "Dragon Quest", "symbol": "DQX", "totalSupply": "500", "decimals": "9"},
        )
        apply_token_defaults(action)
        assert action.details == {
            "name": "Dragon Quest",
            "symbol": "DQX",
            "totalSupply": "500",
            "decimals": "9",
        }

    def test_without_name_only_decimals(self):
        action = BlockchainAction(kind=ActionKind.CREATE_TOKEN, details={})
        apply_token_defaults(action)
        assert action.details == {"decimals": "18"}
        assert action.refresh_completeness().missing_fields == ["name", "symbol", "totalSupply"]

    def test_other_kinds_untouched(self, recipient):
        action = build_action(ActionKind.SEND_TRANSACTION, {"recipient": recipient, "amount": "1"})
        before = dict(action.details)
        apply_token_defaults(action)
        assert action.details == before
