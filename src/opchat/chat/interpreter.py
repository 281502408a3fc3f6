"""Intent extraction: user text in, reply plus validated action out.

The language model is asked for one JSON object inside a ```json fence.
Anything that does not fit that contract degrades to a plain conversational
reply; nothing here raises into the conversation.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from opchat.chat.actions import NATIVE_SYMBOL, ActionKind, BlockchainAction
from opchat.chat.defaults import apply_token_defaults
from opchat.chat.intents import MockIntentParser
from opchat.chat.prompts import build_prompt
from opchat.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

ORACLE_FAILURE_REPLY = (
    "I apologize, but I encountered an error processing your request. Please try again."
)

JSON_FENCE_PATTERN = re.compile(r"```json[ \t]*\r?\n(.*?)\s*```", re.DOTALL)


class Oracle(Protocol):
    """Anything that turns a prompt into text."""

    @property
    def is_available(self) -> bool:
        ...

    async def generate(self, prompt: str) -> str:
        ...


@dataclass
class ExtractionResult:
    """What one user message turned into."""

    reply_text: str
    action: Optional[BlockchainAction] = None
    requires_confirmation: bool = False


class IntentExtractor:
    """Asks the oracle about a message and validates its answer."""

    def __init__(self, oracle: Oracle, settings: Optional[Settings] = None):
        self.oracle = oracle
        self.settings = settings or get_settings()

    async def process_user_input(
        self, user_input: str, history: list[dict[str, str]]
    ) -> ExtractionResult:
        """Interpret one user message.

        Args:
            user_input: The message text
            history: Recent messages as ``{"role", "content"}`` dicts

        Returns:
            ExtractionResult; oracle failures give a fixed apology with no action
        """
        window = self.settings.llm.history_window
        recent = history[-window:] if window > 0 else []

        try:
            if self.oracle.is_available:
                prompt = build_prompt(
                    user_input,
                    recent,
                    network_name=self.settings.chain.network_name,
                    native_symbol=NATIVE_SYMBOL,
                )
                raw = await self.oracle.generate(prompt)
            else:
                logger.debug("LLM not available, using pattern matching")
                raw = MockIntentParser.respond(user_input)
        except Exception as e:
            logger.warning(f"Oracle call failed: {e}")
            return ExtractionResult(reply_text=ORACLE_FAILURE_REPLY)

        return self.parse_response(raw)

    def parse_response(self, raw: str) -> ExtractionResult:
        """Parse the oracle's text into a reply and an optional action."""
        match = JSON_FENCE_PATTERN.search(raw)
        if not match:
            return ExtractionResult(reply_text=raw.strip())

        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError as e:
            logger.debug(f"Fenced block is not valid JSON: {e}")
            return ExtractionResult(reply_text=raw.strip())

        if not isinstance(data, dict):
            return ExtractionResult(reply_text=raw.strip())

        reply = data.get("response")
        if not isinstance(reply, str) or not reply.strip():
            reply = raw.strip()

        action = self._parse_action(data.get("action"))
        if action is None:
            return ExtractionResult(reply_text=reply)

        return ExtractionResult(
            reply_text=reply,
            action=action,
            requires_confirmation=self._requires_confirmation(action),
        )

    def _parse_action(self, raw_action: Any) -> Optional[BlockchainAction]:
        if not isinstance(raw_action, dict):
            return None
        try:
            action = BlockchainAction.model_validate(raw_action)
            if action.kind == ActionKind.SEND_TRANSACTION and not action.details.get("token"):
                action.details = {**action.details, "token": NATIVE_SYMBOL}
            apply_token_defaults(action)
            return action.refresh_completeness()
        except ValidationError as e:
            logger.debug(f"Discarding invalid action: {e}")
            return None

    @staticmethod
    def _requires_confirmation(action: BlockchainAction) -> bool:
        # Upload always hands over to the upload step; executable actions
        # are confirmed exactly when complete
        if action.kind == ActionKind.UPLOAD_NFT:
            return True
        return action.is_executable and action.is_complete
