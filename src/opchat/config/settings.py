"""Configuration management for opchat using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class LLMSettings(BaseModel):
    """LLM configuration."""

    model_config = ConfigDict(extra="ignore")

    provider: str = "gemini"
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    max_tokens: int = 1024
    # Gemini exposes an OpenAI-compatible endpoint
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    history_window: int = 10


class ChainSettings(BaseModel):
    """opBNB network configuration."""

    model_config = ConfigDict(extra="ignore")

    network_name: str = "opBNB Mainnet"
    chain_id: int = 204
    rpc_url: str = "https://opbnb-mainnet-rpc.bnbchain.org"
    explorer_url: str = "https://opbnbscan.com"
    wallet_address: Optional[str] = None
    gas_limits: dict[str, int] = Field(
        default_factory=lambda: {"token": 500000, "nft": 200000, "transfer": 21000}
    )
    default_gas_price_gwei: float = 1.0
    fallback_gas_cost: str = "0.0001"
    rpc_timeout: float = 10.0
    demo_balance: float = 1.0


class PriceSettings(BaseModel):
    """Native asset price lookup configuration."""

    model_config = ConfigDict(extra="ignore")

    cache_ttl: int = 300
    timeout: float = 10.0
    fallback_price: float = 600.0
    coingecko_id: str = "binancecoin"
    coincap_id: str = "binance-coin"
    binance_symbol: str = "BNBUSDT"


class StorageSettings(BaseModel):
    """Image storage configuration."""

    model_config = ConfigDict(extra="ignore")

    sp_endpoint: str = "https://gnfd-testnet-sp1.bnbchain.org"
    bucket_name: str = "opbnb-ai-nfts"
    upload_url: Optional[str] = None
    max_upload_bytes: int = 100 * 1024 * 1024
    allowed_types: list[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/gif",
            "image/webp",
        ]
    )


class ConversationSettings(BaseModel):
    """Conversation persistence configuration."""

    model_config = ConfigDict(extra="ignore")

    persist: bool = True
    max_persisted_messages: int = 50


class Settings(BaseSettings):
    """Main opchat configuration.

    Configuration is loaded from, highest priority first:
    1. Keyword arguments
    2. Environment variables (OPCHAT_* prefix, nested with __)
    3. Config file (~/.opchat/config.yml)
    4. Default values

    Nested sections are merged key by key, so OPCHAT_LLM__MODEL overrides
    only the model and keeps the rest of the file's llm section.
    """

    model_config = SettingsConfigDict(
        env_prefix="OPCHAT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    demo_mode: bool = Field(default=False, description="Run without real API or chain calls")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    prices: PriceSettings = Field(default_factory=PriceSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=get_config_path())
        return init_settings, env_settings, yaml_settings, file_secret_settings


def get_config_dir() -> Path:
    """Get the opchat home directory."""
    return Path.home() / ".opchat"


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.yml"


def load_config_file() -> dict:
    """Load configuration from YAML file if it exists."""
    config_path = get_config_path()
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


def save_config_file(config: dict) -> None:
    """Save configuration to YAML file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False)


def create_default_config() -> None:
    """Create a default config file if it doesn't exist."""
    if not get_config_path().exists():
        # Defaults only; values from the environment stay out of the file
        save_config_file(
            {
                "llm": LLMSettings().model_dump(),
                "chain": ChainSettings().model_dump(),
                "prices": PriceSettings().model_dump(),
                "storage": StorageSettings().model_dump(),
                "conversation": ConversationSettings().model_dump(),
            }
        )


@lru_cache
def get_settings() -> Settings:
    """Get the application settings (cached).

    Loads from environment variables and config file.
    """
    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to reload configuration."""
    get_settings.cache_clear()
