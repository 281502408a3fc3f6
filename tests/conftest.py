"""Pytest configuration and fixtures for opchat tests."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set demo mode for tests
os.environ["OPCHAT_DEMO_MODE"] = "true"

RECIPIENT = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


@pytest.fixture(autouse=True)
def reset_caches(tmp_path, monkeypatch):
    """Start each test with fresh settings, no config file and an empty gas price cache."""
    from opchat.config import settings as settings_module
    from opchat.data.chain import gas_price_cache

    monkeypatch.setattr(settings_module, "get_config_path", lambda: tmp_path / "config.yml")
    settings_module.reset_settings_cache()
    gas_price_cache.clear()
    yield
    gas_price_cache.clear()


@pytest.fixture
def settings():
    """Demo-mode settings (environment forces demo mode)."""
    from opchat.config.settings import Settings

    return Settings()


@pytest.fixture
def live_settings():
    """Settings with demo mode off, for exercising network code paths."""
    from opchat.config.settings import Settings

    return Settings(demo_mode=False)


@pytest.fixture
def recipient():
    return RECIPIENT


@pytest.fixture
def context():
    from opchat.chat.context import ConversationContext

    return ConversationContext()


@pytest.fixture
def token_action():
    """A complete token creation action."""
    from opchat.chat.actions import ActionKind, build_action

    return build_action(
        ActionKind.CREATE_TOKEN,
        {"name": "Dragon Quest", "symbol": "DRQU", "totalSupply": "1000000000", "decimals": "18"},
    )


@pytest.fixture
def transfer_action():
    """A complete native transfer action."""
    from opchat.chat.actions import ActionKind, build_action

    return build_action(
        ActionKind.SEND_TRANSACTION,
        {"recipient": RECIPIENT, "amount": "0.1", "token": "BNB"},
    )


@pytest.fixture
def mock_composer():
    """Composer that answers instantly with a fixed question."""
    composer = MagicMock()
    composer.compose = AsyncMock(return_value="**Should I proceed?** (Yes/No)")
    return composer


@pytest.fixture
def mock_executor():
    """Executor that always succeeds."""
    from opchat.commands.executor import ExecutionResult

    executor = MagicMock()
    executor.execute = AsyncMock(
        return_value=ExecutionResult(
            success=True,
            message="✅ **Transaction Successful!**\n\n**Transaction Hash:** `0xabc`",
            tx_hash="0xabc",
        )
    )
    return executor


@pytest.fixture
def gate(context, mock_composer, mock_executor):
    from opchat.chat.state_machine import ConfirmationGate

    return ConfirmationGate(context, mock_composer, mock_executor)


@pytest.fixture
def storage(settings):
    from opchat.data.storage import StorageService

    return StorageService(settings)


@pytest.fixture
def uploads(context, gate, storage):
    from opchat.chat.upload import UploadCoordinator

    return UploadCoordinator(context, gate, storage, signing_key_provider=lambda: "demo-key")


@pytest.fixture
def png_file():
    from opchat.data.storage import UploadFile

    return UploadFile(name="dawn.png", content_type="image/png", data=b"\x89PNG\r\n\x1a\n" + b"0" * 64)
