"""Tests for conversation state and persistence."""

import json

from opchat.chat.context import (
    WELCOME_MESSAGE_ID,
    ConversationContext,
    MessageRole,
    PendingAction,
    UploadedImage,
    UploadPendingDetails,
)


class TestTranscript:
    """Tests for message handling."""

    def test_starts_with_welcome(self, context):
        assert len(context.messages) == 1
        assert context.messages[0].id == WELCOME_MESSAGE_ID
        assert context.messages[0].role == MessageRole.ASSISTANT

    def test_messages_append_in_order(self, context):
        context.add_user_message("one")
        context.add_assistant_message("two")
        assert [m.content for m in context.messages[1:]] == ["one", "two"]

    def test_update_message(self, context):
        message = context.add_assistant_message("upload please", show_upload=True)
        updated = context.update_message(message.id, show_upload=False)

        assert updated.show_upload is False
        assert context.get_message(message.id).show_upload is False
        assert context.get_message(message.id).content == "upload please"

    def test_update_unknown_message(self, context):
        assert context.update_message("missing", content="x") is None

    def test_history_for_prompt(self, context):
        context.add_user_message("hi")
        context.add_assistant_message("hello")
        history = context.history_for_prompt(2)
        assert history == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]

    def test_history_zero_limit(self, context):
        assert context.history_for_prompt(0) == []

    def test_clear(self, context, token_action):
        context.add_user_message("hi")
        context.pending_action = PendingAction(action=token_action, message_id="m1")
        context.upload_pending_details = UploadPendingDetails(name="Dawn")
        context.uploaded_image = UploadedImage(url="https://x", file_name="x.png")
        context.waiting_for_nft_details = True

        context.clear()

        assert len(context.messages) == 1
        assert context.pending_action is None
        assert context.upload_pending_details is None
        assert context.uploaded_image is None
        assert context.waiting_for_nft_details is False


class TestPersistence:
    """Tests for saving and restoring the transcript."""

    def test_save_and_load(self, tmp_path, context, token_action):
        context.add_user_message("create a token called Dragon Quest")
        context.add_assistant_message("Confirm?", action=token_action, requires_confirmation=True)
        context.pending_action = PendingAction(action=token_action, message_id="m1")
        path = tmp_path / "conversation.json"

        context.save(path)
        restored = ConversationContext.load(path)

        assert [m.content for m in restored.messages] == [m.content for m in context.messages]
        assert [m.id for m in restored.messages] == [m.id for m in context.messages]
        assert [m.timestamp for m in restored.messages] == [m.timestamp for m in context.messages]
        assert [m.role for m in restored.messages] == [m.role for m in context.messages]
        assert restored.messages[-1].action.details["symbol"] == "DRQU"
        assert restored.pending_action is None

    def test_keeps_most_recent(self, tmp_path):
        context = ConversationContext(max_persisted=50)
        for i in range(60):
            context.add_user_message(f"message {i}")
        path = tmp_path / "conversation.json"
        context.save(path)

        data = json.loads(path.read_text())
        assert len(data["messages"]) == 50
        assert data["messages"][-1]["content"] == "message 59"

    def test_missing_file_starts_fresh(self, tmp_path):
        restored = ConversationContext.load(tmp_path / "nope.json")
        assert restored.messages[0].id == WELCOME_MESSAGE_ID

    def test_corrupt_file_starts_fresh(self, tmp_path):
        path = tmp_path / "conversation.json"
        path.write_text("{not json")
        restored = ConversationContext.load(path)
        assert len(restored.messages) == 1
