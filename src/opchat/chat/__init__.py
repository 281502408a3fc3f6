"""Chat and LLM integration for opchat - intent extraction and conversation context."""

from opchat.chat.actions import ActionKind, BlockchainAction
from opchat.chat.context import ConversationContext
from opchat.chat.interpreter import IntentExtractor
from opchat.chat.llm import LLMClient

__all__ = ["ActionKind", "BlockchainAction", "ConversationContext", "IntentExtractor", "LLMClient"]
