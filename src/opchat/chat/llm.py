"""LLM client for the opchat assistant (OpenAI-compatible endpoint)."""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from opchat.config.settings import Settings, get_settings
from opchat.security.credentials import CredentialManager
from opchat.utils.errors import OracleError, classify_error

logger = logging.getLogger(__name__)


class LLMClient:
    """Text-in/text-out client for the language model.

    Gemini is reached through its OpenAI-compatible endpoint, so any
    provider speaking the chat completions API works by changing
    ``llm.base_url`` and ``llm.model``.
    """

    def __init__(self, api_key: Optional[str] = None, settings: Optional[Settings] = None):
        """Initialize the LLM client.

        Args:
            api_key: API key (if not provided, will try to get from keyring)
            settings: Settings override, mainly for tests
        """
        self.settings = settings or get_settings()
        self._api_key = api_key
        self._async_client: Optional[AsyncOpenAI] = None

    @property
    def api_key(self) -> Optional[str]:
        """Get the API key from provided value or keyring."""
        if self._api_key:
            return self._api_key
        return CredentialManager.get_llm_key()

    @property
    def is_available(self) -> bool:
        """Check if LLM is available (has API key and not in demo mode)."""
        return self.api_key is not None and not self.settings.demo_mode

    def _get_async_client(self) -> AsyncOpenAI:
        """Get or create the async OpenAI client."""
        if self._async_client is None:
            if not self.api_key:
                raise OracleError("No language model API key available")
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.settings.llm.base_url,
            )
        return self._async_client

    async def generate(self, prompt: str) -> str:
        """Send a single prompt and return the raw completion text.

        Raises:
            OpchatError: the call failed (classified by cause)
        """
        client = self._get_async_client()
        try:
            response = await client.chat.completions.create(
                model=self.settings.llm.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.llm.temperature,
                max_tokens=self.settings.llm.max_tokens,
            )
        except openai.OpenAIError as e:
            logger.warning(f"LLM request failed: {e}")
            raise classify_error(e) from e

        if not response.choices:
            raise OracleError("Language model returned no choices")
        return response.choices[0].message.content or ""
