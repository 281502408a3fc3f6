"""NFT upload sub-flow: image first, then name/description, then confirmation.

After an image is uploaded the assistant either reuses the name it already
heard, or asks for one and reads the answer with an ordered cascade of
matchers. The first matcher that recognizes the reply decides the outcome.
A name is mandatory; replies without one always lead to another question.
"""

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from opchat.chat.actions import ActionKind, BlockchainAction, build_action
from opchat.chat.context import (
    ConversationContext,
    ConversationMessage,
    UploadedImage,
    UploadPendingDetails,
)
from opchat.data.storage import StorageService, UploadFile
from opchat.security.credentials import CredentialManager

if TYPE_CHECKING:
    from opchat.chat.state_machine import ConfirmationGate

logger = logging.getLogger(__name__)

NFT_DESCRIPTION_PLACEHOLDER = "NFT created with opBNB AI Assistant"

UPLOAD_SUCCESS_PREFACE = "🎉 **Image uploaded successfully!**"
ASK_FOR_DETAILS = (
    f"{UPLOAD_SUCCESS_PREFACE}\n\n"
    "What would you like to call your NFT? You can add a description too, for example:\n"
    '"Call it Dawn description First light over the bay"'
)
ASK_FOR_NAME_WITH_DESCRIPTION = (
    f"{UPLOAD_SUCCESS_PREFACE}\n\n"
    "I have your description. What would you like to name your NFT?"
)
NAME_REQUIRED_PROMPT = (
    "I need at least a name for your NFT before minting. "
    'What would you like to call it? For example: "Call it My Artwork"'
)
SKIP_DESCRIPTION_PROMPT = (
    'What would you like to name your NFT? For example: "Call it My Artwork"'
)
NO_NAME_PROMPT = (
    "I need a name for your NFT. Please say something like "
    '"Call it Sunset Dreams" or "name: Sunset Dreams, description: Evening sky"'
)
NO_IMAGE_MESSAGE = "I don't have an image for your NFT yet. Please upload one first."
UPLOAD_BLOCKED_MESSAGE = (
    "Please answer Yes or No to the pending confirmation before uploading an image."
)
SHORT_REPLY_LIMIT = 50


# =============================================================================
# Detail matchers
# =============================================================================


@dataclass
class DetailsMatch:
    """Outcome of reading a reply: parsed details, or a question to ask back."""

    name: Optional[str] = None
    description: str = ""
    reprompt: Optional[str] = None

    @property
    def is_reprompt(self) -> bool:
        return self.reprompt is not None


DetailMatcher = Callable[[str], Optional[DetailsMatch]]

CALLED_PATTERN = re.compile(
    r"\b(?:called|call it|name it|named)\s+(.+?)(?:\s+(?:with\s+)?description\s*:?\s*(.+))?$",
    re.IGNORECASE | re.DOTALL,
)
LABELED_NAME_PATTERN = re.compile(r"name:\s*([^,\n]+)", re.IGNORECASE)
LABELED_DESCRIPTION_PATTERN = re.compile(r"description:\s*([^,\n]+)", re.IGNORECASE)
PROCEED_PATTERN = re.compile(r"\b(?:confirm|mint|proceed)\b", re.IGNORECASE)
SKIP_PATTERN = re.compile(r"\bskip\b|\bno description\b", re.IGNORECASE)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip().strip("\"'").rstrip(".!").strip()


def _description(value: Optional[str]) -> str:
    text = _clean(value)
    return "" if text.lower() == "nothing" else text


def match_called(text: str) -> Optional[DetailsMatch]:
    """``called <name> [description <description>]``, also "call it" / "name it"."""
    match = CALLED_PATTERN.search(text.strip())
    if not match:
        return None
    name = _clean(match.group(1))
    if not name:
        return None
    return DetailsMatch(name=name, description=_description(match.group(2)))


def match_labeled(text: str) -> Optional[DetailsMatch]:
    """``name: <name>, description: <description>`` with the description optional."""
    name_match = LABELED_NAME_PATTERN.search(text)
    if not name_match:
        return None
    name = _clean(name_match.group(1))
    if not name:
        return None
    description_match = LABELED_DESCRIPTION_PATTERN.search(text)
    description = _description(description_match.group(1)) if description_match else ""
    return DetailsMatch(name=name, description=description)


def match_proceed_without_name(text: str) -> Optional[DetailsMatch]:
    """The user wants to go ahead, but never gave a name."""
    if PROCEED_PATTERN.search(text):
        return DetailsMatch(reprompt=NAME_REQUIRED_PROMPT)
    return None


def match_skip_description(text: str) -> Optional[DetailsMatch]:
    """The user skips the description; we still need the name."""
    if SKIP_PATTERN.search(text) or text.strip().lower() == "no":
        return DetailsMatch(reprompt=SKIP_DESCRIPTION_PROMPT)
    return None


def match_short_name(text: str) -> Optional[DetailsMatch]:
    """A short reply without commas is taken as the name itself."""
    stripped = text.strip()
    if len(stripped) < SHORT_REPLY_LIMIT and "," not in stripped:
        name = _clean(stripped)
        if name:
            return DetailsMatch(name=name)
    return None


# Priority order; the control-word matchers sit ahead of the short-name
# catch-all so "skip" or "mint" never become a name
DETAIL_MATCHERS: list[DetailMatcher] = [
    match_called,
    match_labeled,
    match_proceed_without_name,
    match_skip_description,
    match_short_name,
]


def parse_nft_details(text: str) -> DetailsMatch:
    """Run the matcher cascade; unrecognized replies ask for a name."""
    for matcher in DETAIL_MATCHERS:
        result = matcher(text)
        if result is not None:
            logger.debug(f"NFT details matched by {matcher.__name__}")
            return result
    return DetailsMatch(reprompt=NO_NAME_PROMPT)


# =============================================================================
# Coordinator
# =============================================================================


class UploadCoordinator:
    """Runs the upload step for ``upload_nft`` and hands off to the gate."""

    def __init__(
        self,
        context: ConversationContext,
        gate: "ConfirmationGate",
        storage: StorageService,
        signing_key_provider: Callable[[], Optional[str]] = CredentialManager.get_signing_key,
    ):
        self.context = context
        self.gate = gate
        self.storage = storage
        self._signing_key_provider = signing_key_provider

    async def begin(self, action: BlockchainAction, reply_text: str) -> ConversationMessage:
        """Remember known details and show the upload control."""
        name = _clean(action.details.get("name"))
        description = _description(action.details.get("description"))
        details = UploadPendingDetails(name=name or None, description=description or None)
        self.context.upload_pending_details = None if details.is_empty else details
        self.context.waiting_for_nft_details = False

        hint = await self.gate.composer.compose(action)
        return self.context.add_assistant_message(
            f"{reply_text}\n\n{hint}",
            action=action,
            show_upload=True,
        )

    async def upload(self, file: UploadFile) -> ConversationMessage:
        """Validate and store an image, then continue the flow."""
        if self.context.pending_action is not None:
            return self._refuse_while_pending()

        validation = self.storage.validate(file)
        if not validation.valid:
            return self.fail(validation.error or "Invalid file")

        try:
            signing_key = self._signing_key_provider()
        except Exception as e:
            logger.warning(f"Signing key unavailable for upload: {e}")
            signing_key = None

        result = await self.storage.upload(file, signing_key, file.name)
        if not result.success or not result.url:
            return self.fail(result.error or "Upload failed")
        return await self.complete(result.url, file.name)

    async def complete(self, url: str, file_name: str) -> ConversationMessage:
        """Continue after the storage layer reports a stored image."""
        if self.context.pending_action is not None:
            return self._refuse_while_pending()

        image = UploadedImage(url=url, file_name=file_name)
        self.context.uploaded_image = image
        self._retire_upload_control()

        pending = self.context.upload_pending_details
        if pending is not None and pending.name:
            return await self._present_mint(
                pending.name,
                pending.description,
                preface=UPLOAD_SUCCESS_PREFACE,
            )

        self.context.waiting_for_nft_details = True
        if pending is not None and pending.description:
            # Keep the description until a name arrives
            return self.context.add_assistant_message(
                ASK_FOR_NAME_WITH_DESCRIPTION, uploaded_image=image
            )
        self.context.upload_pending_details = None
        return self.context.add_assistant_message(ASK_FOR_DETAILS, uploaded_image=image)

    async def handle_details_reply(self, text: str) -> ConversationMessage:
        """Read the name/description reply that follows an upload."""
        if self.context.uploaded_image is None:
            self.context.waiting_for_nft_details = False
            return self.context.add_assistant_message(NO_IMAGE_MESSAGE)

        result = parse_nft_details(text)
        if result.is_reprompt:
            return self.context.add_assistant_message(result.reprompt)

        pending = self.context.upload_pending_details
        description = result.description or (pending.description if pending else None)
        message = await self._present_mint(result.name, description)
        self.context.waiting_for_nft_details = False
        return message

    def fail(self, error: str) -> ConversationMessage:
        """Report an upload failure; the conversation state stays as it was."""
        logger.info(f"Upload failed: {error}")
        return self.context.add_assistant_message(
            f"❌ **Upload Failed**\n\n{error}\n\nPlease try again with a valid image file."
        )

    async def _present_mint(
        self,
        name: str,
        description: Optional[str],
        preface: Optional[str] = None,
    ) -> ConversationMessage:
        image = self.context.uploaded_image
        action = build_action(
            ActionKind.MINT_NFT,
            {
                "name": name,
                "description": description or NFT_DESCRIPTION_PLACEHOLDER,
                "imageUrl": image.url,
                "attributes": [],
            },
        )
        message = await self.gate.compose_and_present(action, preface=preface, uploaded_image=image)
        # Only forget the details once the mint is actually pending
        self.context.upload_pending_details = None
        return message

    def _refuse_while_pending(self) -> ConversationMessage:
        logger.info("Upload refused while a confirmation is pending")
        return self.context.add_assistant_message(UPLOAD_BLOCKED_MESSAGE)

    def _retire_upload_control(self) -> None:
        for message in reversed(self.context.messages):
            if message.show_upload:
                self.context.update_message(message.id, show_upload=False)
                break
