"""Tests for the pattern-based intent parser used without a language model."""

import json

import pytest

from opchat.chat.actions import ActionKind
from opchat.chat.intents import HELP_REPLY, MockIntentParser

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


class TestDetect:
    """Tests for intent detection."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Create an NFT called Sunrise", ActionKind.UPLOAD_NFT),
            ("mint a new nft", ActionKind.UPLOAD_NFT),
            ("Create a gaming token called Dragon Quest", ActionKind.CREATE_TOKEN),
            ("launch a meme coin", ActionKind.CREATE_TOKEN),
            (f"send 0.1 BNB to {ADDRESS}", ActionKind.SEND_TRANSACTION),
            ("show my recent transactions", ActionKind.GET_TRANSACTIONS),
            ("what's my balance?", ActionKind.CHECK_BALANCE),
        ],
    )
    def test_detect(self, text, expected):
        assert MockIntentParser.detect(text) == expected

    def test_no_intent(self):
        assert MockIntentParser.detect("hello there") is None


class TestParseToken:
    """Tests for token detail extraction."""

    def test_name_and_symbol(self):
        payload = MockIntentParser.parse("Create a token called Moon Cat with symbol MCAT")
        details = payload["action"]["details"]
        assert details["name"] == "Moon Cat"
        assert details["symbol"] == "MCAT"
        assert payload["action"]["isComplete"] is True

    def test_supply_with_multiplier(self):
        payload = MockIntentParser.parse("Create a token called Pixel with 5 million supply")
        assert payload["action"]["details"]["totalSupply"] == "5000000"

    def test_supply_of(self):
        payload = MockIntentParser.parse("make a token named Acme, supply of 250k")
        assert payload["action"]["details"]["totalSupply"] == "250000"

    def test_missing_name(self):
        payload = MockIntentParser.parse("create a token")
        assert payload["action"]["missingFields"] == ["name"]
        assert payload["requiresConfirmation"] is False


class TestParseNFT:
    """Tests for NFT detail extraction."""

    def test_nft_name(self):
        payload = MockIntentParser.parse("Create an NFT called Sunrise")
        assert payload["action"]["action"] == "upload_nft"
        assert payload["action"]["details"]["name"] == "Sunrise"
        assert payload["requiresConfirmation"] is True

    def test_nft_description(self):
        payload = MockIntentParser.parse("mint an nft called Dawn description First light")
        details = payload["action"]["details"]
        assert details["name"] == "Dawn"
        assert details["description"] == "First light"

    def test_nft_without_name(self):
        payload = MockIntentParser.parse("I want to make an NFT")
        assert payload["action"]["details"] == {}


class TestParseTransfer:
    """Tests for transfer detail extraction."""

    def test_complete_transfer(self):
        payload = MockIntentParser.parse(f"send 0.5 BNB to {ADDRESS}")
        details = payload["action"]["details"]
        assert details == {"token": "BNB", "amount": "0.5", "recipient": ADDRESS}
        assert payload["action"]["isComplete"] is True

    def test_amount_without_unit(self):
        payload = MockIntentParser.parse(f"send 2 to {ADDRESS}")
        assert payload["action"]["details"]["token"] == "BNB"
        assert payload["action"]["details"]["amount"] == "2"

    def test_missing_recipient(self):
        payload = MockIntentParser.parse("send 1 BNB")
        assert payload["action"]["missingFields"] == ["recipient"]
        assert payload["action"]["isComplete"] is False


class TestRespond:
    """Tests for the fenced JSON rendering."""

    def test_fenced_json(self):
        raw = MockIntentParser.respond("Create a token called Moon")
        assert raw.startswith("```json\n")
        assert raw.endswith("\n```")
        body = json.loads(raw[len("```json\n") : -len("\n```")])
        assert body["action"]["action"] == "create_token"

    def test_help_for_small_talk(self):
        body = MockIntentParser.parse("hi")
        assert body == {"response": HELP_REPLY, "action": None, "requiresConfirmation": False}
