"""Main CLI entry point for opchat."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.logging import RichHandler

from opchat import __app_name__, __version__
from opchat.chat.confirmation import ConfirmationComposer
from opchat.chat.context import ConversationContext, ConversationMessage
from opchat.chat.interpreter import IntentExtractor
from opchat.chat.llm import LLMClient
from opchat.chat.state_machine import (
    ConfirmationGate,
    ConversationEngine,
    GateState,
)
from opchat.chat.upload import UploadCoordinator
from opchat.commands.executor import ActionExecutor
from opchat.config.settings import (
    Settings,
    create_default_config,
    get_config_dir,
    get_settings,
    load_config_file,
    reset_settings_cache,
    save_config_file,
)
from opchat.data.chain import DemoSubmitter, GasEstimator, Submitter
from opchat.data.prices import PriceService
from opchat.data.storage import StorageService, UploadFile
from opchat.security.credentials import (
    CredentialManager,
    is_valid_signing_key,
    setup_secure_logging,
)
from opchat.ui.console import (
    console,
    format_address,
    print_assistant_message,
    print_error,
    print_success,
    print_warning,
    print_welcome,
)
from opchat.ui.prompts import confirm, input_address, input_secret, select_provider
from opchat.utils.errors import UploadError, ValidationError, handle_errors

logger = logging.getLogger(__name__)

# Stand-in wallet used only in demo mode when nothing is configured
DEMO_SIGNING_KEY = "demo-signing-key"
DEMO_WALLET_ADDRESS = "0x" + "d3" * 20

PROVIDER_DEFAULTS = {
    "gemini": {
        "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "model": "gemini-2.0-flash",
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "model": "gpt-4o-mini",
    },
}

app = typer.Typer(
    name=__app_name__,
    help="AI-powered conversational assistant for opBNB",
    rich_markup_mode="rich",
    no_args_is_help=False,
    invoke_without_command=True,
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"[primary]{__app_name__}[/primary] version [bnb]{__version__}[/bnb]")
        raise typer.Exit()


def _configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        )
    else:
        logging.basicConfig(level=logging.WARNING, handlers=[logging.NullHandler()])
    setup_secure_logging()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    demo: bool = typer.Option(
        False,
        "--demo",
        help="Run in demo mode (no real API calls, simulated transactions)",
    ),
    debug: bool = typer.Option(False, "--debug", help="Show debug logs"),
):
    """opchat - AI-powered assistant for opBNB."""
    create_default_config()

    if demo:
        os.environ["OPCHAT_DEMO_MODE"] = "true"
        reset_settings_cache()

    _configure_logging(debug)

    if ctx.invoked_subcommand is None:
        asyncio.run(_chat_loop())


# =============================================================================
# Wiring
# =============================================================================


def _conversation_path() -> Path:
    return get_config_dir() / "conversation.json"


def _signing_key_provider(settings: Settings) -> Callable[[], Optional[str]]:
    def provider() -> Optional[str]:
        key = CredentialManager.get_signing_key()
        if not key and settings.demo_mode:
            return DEMO_SIGNING_KEY
        return key

    return provider


def _wallet_address_provider(settings: Settings) -> Callable[[], Optional[str]]:
    def provider() -> Optional[str]:
        address = CredentialManager.get_wallet_address() or settings.chain.wallet_address
        if not address and settings.demo_mode:
            return DEMO_WALLET_ADDRESS
        return address

    return provider


def build_engine(
    context: ConversationContext,
    settings: Optional[Settings] = None,
    submitter: Optional[Submitter] = None,
) -> tuple[ConversationEngine, list]:
    """Assemble the conversation engine and the services it talks to.

    Transactions go through ``submitter``, which defaults to the simulated
    ``DemoSubmitter``.

    Returns:
        The engine and the services that hold HTTP clients to close
    """
    settings = settings or get_settings()
    signing_key = _signing_key_provider(settings)
    wallet_address = _wallet_address_provider(settings)

    gas = GasEstimator(settings)
    prices = PriceService(settings)
    storage = StorageService(settings)

    composer = ConfirmationComposer(gas, prices, settings, wallet_address_provider=wallet_address)
    submitter = submitter or DemoSubmitter(settings)
    executor = ActionExecutor(submitter, signing_key, wallet_address, settings)
    gate = ConfirmationGate(context, composer, executor)
    uploads = UploadCoordinator(context, gate, storage, signing_key)
    extractor = IntentExtractor(LLMClient(settings=settings), settings)

    engine = ConversationEngine(context, extractor, gate, uploads, settings)
    return engine, [gas, prices, storage]


def _load_context(settings: Settings) -> ConversationContext:
    limit = settings.conversation.max_persisted_messages
    if settings.conversation.persist:
        return ConversationContext.load(_conversation_path(), max_persisted=limit)
    return ConversationContext(max_persisted=limit)


def _save_context(context: ConversationContext, settings: Settings) -> None:
    if not settings.conversation.persist:
        return
    try:
        context.save(_conversation_path())
    except OSError as e:
        logger.warning(f"Could not save conversation: {e}")


def _render(messages: list[ConversationMessage]) -> None:
    for message in messages:
        print_assistant_message(message.content)
        if message.show_upload:
            console.print("[muted]Upload your image with: /upload <path>[/muted]\n")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def chat(
    message: Optional[str] = typer.Argument(None, help="Initial message (optional)"),
):
    """Start interactive chat mode.

    [green]Examples:[/green]
        opchat chat
        opchat chat "create a meme token called Moon Cat"
        opchat chat "send 0.01 BNB to 0x..."
    """
    asyncio.run(_chat_loop(message))


async def _chat_loop(initial_message: Optional[str] = None):
    """Main chat loop."""
    settings = get_settings()
    context = _load_context(settings)
    engine, services = build_engine(context, settings)

    print_welcome()
    if settings.demo_mode:
        console.print("[warning]Running in demo mode - no real API calls are made[/warning]")
    console.print(
        "[muted]Transactions are simulated; no broadcast backend is configured[/muted]"
    )
    if not settings.demo_mode and not CredentialManager.has_wallet():
        print_warning("No wallet connected. Run 'opchat setup' before confirming transactions.")
    if not engine.extractor.oracle.is_available:
        console.print("[muted]LLM not available - using pattern matching[/muted]")
        console.print("[muted]Run 'opchat setup' to configure an API key[/muted]")
    console.print("[muted]Commands: /upload <path>, /price, /clear, quit[/muted]\n")

    _render(context.messages[-1:])

    async def send(text: str) -> None:
        with console.status("[bold green]Thinking..."):
            replies = await engine.handle_user_message(text)
        _render(replies)
        _save_context(context, settings)

    try:
        if initial_message:
            await send(initial_message)

        while True:
            if engine.state == GateState.AWAITING_CONFIRMATION:
                prompt_text = "[prompt](yes/no)>[/prompt] "
            elif context.waiting_for_nft_details:
                prompt_text = "[prompt]NFT name>[/prompt] "
            else:
                prompt_text = "[prompt]You:[/prompt] "

            try:
                user_input = console.input(prompt_text).strip()
            except KeyboardInterrupt:
                console.print("\n[muted]Use 'quit' to exit[/muted]")
                continue
            except EOFError:
                break

            if not user_input:
                continue

            command = user_input.lower()
            if command in ("quit", "exit", "q") and engine.state == GateState.IDLE:
                console.print("[muted]Goodbye![/muted]")
                break

            if command in ("/clear", "clear"):
                engine.clear()
                _save_context(context, settings)
                console.clear()
                print_welcome()
                _render(context.messages[-1:])
                continue

            if command == "/price":
                await _print_price(services[1])
                continue

            if command.startswith("/upload"):
                await _upload(engine, user_input[len("/upload") :].strip())
                _save_context(context, settings)
                continue

            await send(user_input)
    finally:
        for service in services:
            await service.close()


async def _upload(engine: ConversationEngine, raw_path: str) -> None:
    if engine.gate.is_awaiting:
        print_warning("Please answer Yes or No to the pending confirmation first.")
        return
    if not raw_path:
        print_error("Usage: /upload <path to image>")
        return
    try:
        file = UploadFile.from_path(Path(raw_path).expanduser())
    except UploadError as e:
        e.display()
        return

    with console.status("[bold green]Uploading image..."):
        replies = await engine.upload_file(file)
    _render(replies)


async def _print_price(prices: PriceService) -> None:
    with console.status("[bold green]Fetching BNB price..."):
        summary = await prices.format_price_with_change()
        data = await prices.get_price()
    console.print()
    console.print(f"[bold]BNB Price:[/bold] [bnb]{summary}[/bnb]")
    console.print(f"[muted]Source: {data.source}[/muted]")
    console.print()


@app.command()
def price():
    """Show the current BNB price.

    [green]Example:[/green]
        opchat price
    """

    @handle_errors(show_error=True)
    async def _show_price():
        prices = PriceService()
        try:
            await _print_price(prices)
        finally:
            await prices.close()

    asyncio.run(_show_price())


@app.command()
def clear():
    """Forget the saved conversation."""
    path = _conversation_path()
    if path.exists():
        path.unlink()
    print_success("Conversation history cleared")


@app.command()
def setup():
    """Configure the language model, API key and wallet.

    Secrets are stored in your system keyring.
    """
    console.print("[primary]opchat Setup[/primary]\n")

    # Language model
    console.print("[bold]1. Language model[/bold]")
    config = load_config_file()
    llm_config = config.setdefault("llm", {})
    current_provider = llm_config.get("provider", "gemini")
    provider = select_provider(current_provider if current_provider in PROVIDER_DEFAULTS else "gemini")
    llm_config.update({"provider": provider, **PROVIDER_DEFAULTS[provider]})
    save_config_file(config)
    reset_settings_cache()

    existing_key = CredentialManager.get_llm_key()
    if existing_key and not confirm(f"Update API key ({existing_key[:6]}...)?"):
        console.print("[muted]Keeping existing key[/muted]\n")
    else:
        api_key = input_secret("API key (leave empty to skip)")
        if api_key:
            CredentialManager.set_llm_key(api_key)
            print_success("API key saved")
        else:
            console.print("[muted]Skipped - will use pattern matching mode[/muted]\n")

    # Wallet
    console.print("\n[bold]2. Wallet[/bold]")
    current = CredentialManager.get_wallet_address()
    console.print(f"[muted]Current address: {format_address(current)}[/muted]")
    address = input_address(default=current)
    if address:
        signing_key = input_secret(
            "Signing key (leave empty to keep the current one)", validate=is_valid_signing_key
        )
        try:
            CredentialManager.connect_wallet(address, signing_key or None)
        except ValidationError as e:
            e.display()
        else:
            print_success("Wallet connected")

    print_success("Setup complete!")
    console.print("[muted]Run 'opchat chat' to start chatting[/muted]")


@app.command()
def disconnect():
    """Forget the stored wallet address and signing key."""
    if not confirm("Remove the stored wallet from this machine?"):
        return
    if CredentialManager.disconnect_wallet():
        print_success("Wallet disconnected")
    else:
        console.print("[muted]No wallet was stored[/muted]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
