"""Chat completion client for Azure OpenAI."""

import logging
from typing import Optional, Sequence

from openai import AsyncAzureOpenAI, OpenAIError

from ragbot.clients.retry import call_with_retry, is_transient_openai_error
from ragbot.config.configuration import RetryConfig
from ragbot.models import ChatMessage

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Raised when the chat completion call fails after all retries."""
    pass


class CompletionClient:
    """Sends role-tagged message lists to an Azure OpenAI chat deployment."""

    def __init__(
        self,
        openai_client: AsyncAzureOpenAI,
        deployment: str,
        retry_config: RetryConfig,
    ):
        self._client = openai_client
        self._deployment = deployment
        self._retry_config = retry_config

    async def complete(self, messages: Sequence[ChatMessage], temperature: float) -> Optional[str]:
        """
        Request a completion for the given messages.

        Args:
            messages: Ordered prompt messages.
            temperature: Sampling temperature.

        Returns:
            The content of the first choice, or None when the response is
            well-formed but carries no content.

        Raises:
            CompletionError: If the request fails after all retries.
        """
        payload = [message.to_openai() for message in messages]

        try:
            response = await call_with_retry(
                lambda: self._client.chat.completions.create(
                    model=self._deployment,
                    messages=payload,
                    temperature=temperature,
                ),
                self._retry_config,
                is_transient=is_transient_openai_error,
                operation_name="Chat completion",
            )
        except (OpenAIError, TimeoutError) as e:
            logger.error(f"Azure OpenAI chat completion failed: {e}")
            raise CompletionError(f"Chat completion failed: {e}") from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None)
