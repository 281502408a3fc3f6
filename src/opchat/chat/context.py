"""Conversation session state for opchat.

Everything a conversation owns lives on one ``ConversationContext``: the
transcript, the single pending action slot and the NFT upload slots. Core
operations receive the context explicitly; nothing here is global.
"""

import json
import logging
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from opchat.chat.actions import BlockchainAction

logger = logging.getLogger(__name__)

WELCOME_MESSAGE_ID = "welcome"
WELCOME_TEXT = (
    "Hello! I'm your opBNB AI Assistant. I can help you with:\n\n"
    "- **Create tokens** (BEP-20)\n"
    "- **Mint NFTs** from your own images\n"
    "- **Send BNB** or tokens to any address\n"
    "- **Check balances** and recent transactions\n\n"
    "Just tell me what you'd like to do in plain English!"
)
DEFAULT_MAX_PERSISTED = 50


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class UploadedImage(BaseModel):
    """Reference to an image already in storage."""

    url: str
    file_name: str


class ConversationMessage(BaseModel):
    """One turn in the visible transcript."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    action: Optional[BlockchainAction] = None
    requires_confirmation: bool = False
    show_upload: bool = False
    uploaded_image: Optional[UploadedImage] = None


class PendingAction(BaseModel):
    """The one action waiting for a yes/no from the user."""

    action: BlockchainAction
    message_id: str
    awaiting_confirmation: bool = True


class UploadPendingDetails(BaseModel):
    """Name/description known before the image upload was requested."""

    name: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.description)


def welcome_message() -> ConversationMessage:
    return ConversationMessage(
        id=WELCOME_MESSAGE_ID,
        role=MessageRole.ASSISTANT,
        content=WELCOME_TEXT,
    )


class ConversationContext:
    """Session-scoped state for one conversation."""

    def __init__(self, max_persisted: int = DEFAULT_MAX_PERSISTED):
        self.max_persisted = max_persisted
        self.messages: list[ConversationMessage] = [welcome_message()]
        self.pending_action: Optional[PendingAction] = None
        self.upload_pending_details: Optional[UploadPendingDetails] = None
        self.uploaded_image: Optional[UploadedImage] = None
        self.waiting_for_nft_details = False
        self.is_processing = False

    # -------------------------------------------------------------------------
    # Transcript
    # -------------------------------------------------------------------------

    def add_message(self, message: ConversationMessage) -> ConversationMessage:
        self.messages.append(message)
        return message

    def add_user_message(self, content: str) -> ConversationMessage:
        return self.add_message(ConversationMessage(role=MessageRole.USER, content=content))

    def add_assistant_message(self, content: str, **fields: Any) -> ConversationMessage:
        return self.add_message(
            ConversationMessage(role=MessageRole.ASSISTANT, content=content, **fields)
        )

    def get_message(self, message_id: str) -> Optional[ConversationMessage]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def update_message(self, message_id: str, **updates: Any) -> Optional[ConversationMessage]:
        """Apply an in-place update to one message; returns None if unknown."""
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                self.messages[index] = message.model_copy(update=updates)
                return self.messages[index]
        logger.debug(f"update_message: no message with id {message_id}")
        return None

    def get_recent_history(self, limit: int = 10) -> list[ConversationMessage]:
        """Last ``limit`` messages, oldest first."""
        if limit <= 0:
            return []
        return self.messages[-limit:]

    def history_for_prompt(self, limit: int = 10) -> list[dict[str, str]]:
        """Recent messages in the compact form embedded into the model prompt."""
        return [
            {"role": m.role.value, "content": m.content} for m in self.get_recent_history(limit)
        ]

    def clear(self) -> None:
        """Reset to a fresh conversation with only the welcome message."""
        self.messages = [welcome_message()]
        self.pending_action = None
        self.upload_pending_details = None
        self.uploaded_image = None
        self.waiting_for_nft_details = False
        self.is_processing = False

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize the most recent messages (timestamps as ISO strings)."""
        recent = self.messages[-self.max_persisted :]
        return {
            "version": 1,
            "messages": [m.model_dump(mode="json", exclude_none=True) for m in recent],
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], max_persisted: int = DEFAULT_MAX_PERSISTED
    ) -> "ConversationContext":
        """Restore a context; transient slots always start empty."""
        context = cls(max_persisted=max_persisted)
        raw_messages = data.get("messages") or []
        messages = [ConversationMessage.model_validate(m) for m in raw_messages]
        if messages:
            context.messages = messages[-max_persisted:]
        return context

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: Path, max_persisted: int = DEFAULT_MAX_PERSISTED) -> "ConversationContext":
        """Load a saved conversation, starting fresh if the file is absent or unreadable."""
        if not path.exists():
            return cls(max_persisted=max_persisted)
        try:
            with open(path) as f:
                return cls.from_dict(json.load(f), max_persisted=max_persisted)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not restore conversation from {path}: {e}")
            return cls(max_persisted=max_persisted)
