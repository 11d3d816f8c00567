"""
Language-model client for the setlist agent.

The resolver only depends on the ``ModelClient`` protocol: one coroutine that
takes a system prompt, a user prompt and a temperature and returns text.
``AnthropicModelClient`` is the production implementation.
"""

from typing import Optional, Protocol

from loguru import logger

from .config import Settings


class ModelClient(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        ...


class AnthropicModelClient:
    """ModelClient backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        settings = Settings.from_env()
        self._api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.model
        self.max_tokens = max_tokens or settings.max_tokens
        self._client = None

    def _get_client(self):
        """Lazy-init the Anthropic client."""
        if self._client is None:
            import anthropic
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        return self._client

    async def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        client = self._get_client()
        logger.debug(f"Model call: model={self.model} temperature={temperature}")
        response = await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system_prompt,
            temperature=temperature,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(
            block.text for block in response.content if block.type == "text"
        )
