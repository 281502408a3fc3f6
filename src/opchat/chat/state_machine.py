"""Conversation engine and the confirmation gate for opchat.

Every turn goes through one ``ConversationEngine``. It routes the message to
whichever step currently owns the conversation:

- the confirmation gate, when an action is waiting for yes/no
- the NFT upload flow, when it is waiting for a name
- the intent extractor otherwise

Nothing reaches the chain without passing the gate, and the gate holds at
most one pending action.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from opchat.chat.actions import ActionKind, BlockchainAction
from opchat.chat.confirmation import ConfirmationComposer
from opchat.chat.context import (
    ConversationContext,
    ConversationMessage,
    MessageRole,
    PendingAction,
)
from opchat.chat.interpreter import IntentExtractor
from opchat.chat.upload import UploadCoordinator
from opchat.commands.executor import ActionExecutor, ExecutionResult
from opchat.config.settings import Settings, get_settings
from opchat.data.storage import UploadFile
from opchat.utils.errors import GateStateError

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = (
    "❌ **Action Cancelled**\n\n"
    "No problem! The action has been cancelled. Is there anything else I can help you with?"
)
UNCLEAR_REPLY_MESSAGE = (
    'I didn\'t understand your response. Please reply with **"Yes"** to confirm '
    'or **"No"** to cancel the action.'
)
TURN_FAILURE_MESSAGE = (
    "I apologize, but I encountered an error. "
    "Please check your internet connection and try again."
)


# =============================================================================
# Replies
# =============================================================================


class GateState(str, Enum):
    """Where the confirmation gate stands."""

    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"


class ReplySignal(str, Enum):
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    AMBIGUOUS = "ambiguous"


AFFIRMATIVE_REPLIES = frozenset({"yes", "y", "confirm", "proceed", "ok", "sure"})
NEGATIVE_REPLIES = frozenset({"no", "n", "cancel", "abort", "stop"})


def classify_reply(text: str) -> ReplySignal:
    """Classify a reply to a confirmation question.

    Only whole-message matches count, so "yes but change the name" is
    ambiguous rather than a yes.
    """
    normalized = text.strip().lower().rstrip(".!")
    if normalized in AFFIRMATIVE_REPLIES:
        return ReplySignal.AFFIRMATIVE
    if normalized in NEGATIVE_REPLIES:
        return ReplySignal.NEGATIVE
    return ReplySignal.AMBIGUOUS


@dataclass
class GateOutcome:
    """What the gate did with a reply."""

    signal: Optional[ReplySignal] = None
    message: Optional[ConversationMessage] = None
    execution: Optional[ExecutionResult] = None

    @property
    def handled(self) -> bool:
        return self.signal is not None


# =============================================================================
# Confirmation gate
# =============================================================================


class ConfirmationGate:
    """Holds the single pending action until the user says yes or no."""

    def __init__(
        self,
        context: ConversationContext,
        composer: ConfirmationComposer,
        executor: ActionExecutor,
    ):
        self.context = context
        self.composer = composer
        self.executor = executor
        self._executing = False

    @property
    def state(self) -> GateState:
        if self._executing:
            return GateState.EXECUTING
        if self.context.pending_action is not None:
            return GateState.AWAITING_CONFIRMATION
        return GateState.IDLE

    @property
    def is_awaiting(self) -> bool:
        pending = self.context.pending_action
        return pending is not None and pending.awaiting_confirmation and not self._executing

    async def compose_and_present(
        self,
        action: BlockchainAction,
        preface: Optional[str] = None,
        **message_fields,
    ) -> ConversationMessage:
        """Show the confirmation question for a complete action and hold it.

        Raises:
            GateStateError: If another action is already pending, or the
                action is incomplete
        """
        if self.context.pending_action is not None:
            raise GateStateError("An action is already awaiting confirmation")
        if not action.is_complete:
            raise GateStateError(f"Cannot confirm incomplete {action.kind.value} action")

        text = await self.composer.compose(action)
        if self.context.pending_action is not None:
            raise GateStateError("An action is already awaiting confirmation")

        content = f"{preface}\n\n{text}" if preface else text
        message = self.context.add_assistant_message(
            content,
            action=action,
            requires_confirmation=True,
            **message_fields,
        )
        self.context.pending_action = PendingAction(
            action=action.model_copy(deep=True),
            message_id=message.id,
        )
        logger.info(f"Awaiting confirmation for {action.kind.value}")
        return message

    async def handle_reply(self, text: str) -> GateOutcome:
        """Resolve the pending action from the user's reply.

        Returns an outcome with ``signal=None`` when nothing is pending.
        """
        if not self.is_awaiting:
            logger.debug("Reply ignored: nothing awaiting confirmation")
            return GateOutcome()

        signal = classify_reply(text)
        if signal is ReplySignal.AMBIGUOUS:
            message = self.context.add_assistant_message(UNCLEAR_REPLY_MESSAGE)
            return GateOutcome(signal=signal, message=message)

        # Release the slot before any await so a second reply finds nothing
        pending = self.context.pending_action
        self.context.pending_action = None
        self.context.update_message(pending.message_id, requires_confirmation=False)

        if signal is ReplySignal.NEGATIVE:
            logger.info(f"{pending.action.kind.value} cancelled by user")
            message = self.context.add_assistant_message(CANCELLED_MESSAGE)
            return GateOutcome(signal=signal, message=message)

        self._executing = True
        try:
            result = await self.executor.execute(pending.action)
        finally:
            self._executing = False

        message = self.context.add_assistant_message(result.message)
        return GateOutcome(signal=signal, message=message, execution=result)


# =============================================================================
# Conversation engine
# =============================================================================


class ConversationEngine:
    """Routes each user turn and keeps the context consistent."""

    def __init__(
        self,
        context: ConversationContext,
        extractor: IntentExtractor,
        gate: ConfirmationGate,
        uploads: UploadCoordinator,
        settings: Optional[Settings] = None,
    ):
        self.context = context
        self.extractor = extractor
        self.gate = gate
        self.uploads = uploads
        self.settings = settings or get_settings()

    @property
    def state(self) -> GateState:
        return self.gate.state

    def _new_messages(self, start: int) -> list[ConversationMessage]:
        return [m for m in self.context.messages[start:] if m.role == MessageRole.ASSISTANT]

    async def handle_user_message(self, text: str) -> list[ConversationMessage]:
        """Process one user message.

        Returns:
            The assistant messages produced by this turn. Empty when the
            message was blank or another turn is still running.
        """
        text = text.strip()
        if not text or self.context.is_processing:
            return []

        start = len(self.context.messages)
        history = self.context.history_for_prompt(self.settings.llm.history_window)
        self.context.is_processing = True
        try:
            self.context.add_user_message(text)
            if self.gate.is_awaiting:
                await self.gate.handle_reply(text)
            elif self.context.waiting_for_nft_details:
                await self.uploads.handle_details_reply(text)
            else:
                await self._interpret(text, history)
        except Exception as e:
            logger.error(f"Turn failed: {e}", exc_info=True)
            self.context.add_assistant_message(TURN_FAILURE_MESSAGE)
        finally:
            self.context.is_processing = False

        return self._new_messages(start)

    async def _interpret(self, text: str, history: list[dict[str, str]]) -> None:
        result = await self.extractor.process_user_input(text, history)
        action = result.action

        if action is not None and action.kind == ActionKind.UPLOAD_NFT and result.requires_confirmation:
            await self.uploads.begin(action, result.reply_text)
            return

        self.context.add_assistant_message(result.reply_text, action=action)
        if action is not None and result.requires_confirmation:
            await self.gate.compose_and_present(action)

    async def upload_file(self, file: UploadFile) -> list[ConversationMessage]:
        """Upload an image for the NFT flow."""
        if self.context.is_processing:
            return []
        start = len(self.context.messages)
        self.context.is_processing = True
        try:
            await self.uploads.upload(file)
        except Exception as e:
            logger.error(f"Upload turn failed: {e}", exc_info=True)
            self.uploads.fail(str(e) or "Upload failed")
        finally:
            self.context.is_processing = False
        return self._new_messages(start)

    async def handle_upload_complete(self, url: str, file_name: str) -> ConversationMessage:
        """Continue the flow after an image was stored elsewhere."""
        return await self.uploads.complete(url, file_name)

    def handle_upload_error(self, error: str) -> ConversationMessage:
        return self.uploads.fail(error)

    def clear(self) -> None:
        self.context.clear()
