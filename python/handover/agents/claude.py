"""Text completion through the Anthropic API.

Every agent talks to the model through a ``ChatFn``: ordered role-tagged
messages plus an optional system string in, raw text out.
"""

from typing import Awaitable, Protocol

import anthropic

from ..config import HandoverConfig, load_config
from ..errors import CollaboratorError


class ChatFn(Protocol):
    def __call__(
        self,
        messages: list[dict],
        *,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Awaitable[str]: ...


def create_client(config: HandoverConfig) -> anthropic.AsyncAnthropic:
    if not config.api_key:
        raise CollaboratorError(
            "Anthropic API key is required. Set ANTHROPIC_API_KEY or add "
            "apiKey to .handover/config.json"
        )
    return anthropic.AsyncAnthropic(api_key=config.api_key)


def _extract_text(response: anthropic.types.Message) -> str:
    return "".join(block.text for block in response.content if block.type == "text")


class ClaudeChat:
    """Default ``ChatFn`` bound to a loaded configuration."""

    def __init__(self, config: HandoverConfig | None = None) -> None:
        self.config = config or load_config()
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = create_client(self.config)
        return self._client

    async def __call__(
        self,
        messages: list[dict],
        *,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        kwargs: dict = {
            "model": self.config.model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": (
                temperature if temperature is not None else self.config.temperature
            ),
            "messages": messages,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as err:
            raise CollaboratorError(f"Claude API error: {err}") from err
        return _extract_text(response)
