"""
Client for the hosted text-generation API.

Sends role-tagged chat messages to an OpenAI-compatible endpoint through the
openai SDK and returns the completion text. The endpoint, model and key come
from an explicit AssistantSettings instance.
"""

import logging

from openai import OpenAI, OpenAIError

from sheet2sql.config import AssistantSettings
from sheet2sql.exceptions.assistant_exceptions import CompletionError, ConfigurationError

logger = logging.getLogger(__name__)

ChatMessage = dict[str, str]


class CompletionClient:
    """
    Chat-completion client.

    The SDK client is created on first use so the service can start (and
    serve the endpoints that need no model) without an API key.

    Attributes:
        settings: Endpoint, model and credential settings.

    Example:
        client = CompletionClient(AssistantSettings.from_env())
        text = client.complete(
            [{"role": "user", "content": "Say hi"}],
            temperature=0.1,
            max_tokens=50,
        )
    """

    def __init__(self, settings: AssistantSettings | None = None, sdk_client: OpenAI | None = None) -> None:
        self.settings = settings or AssistantSettings()
        self._client = sdk_client

    @property
    def model(self) -> str:
        return self.settings.model

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.settings.api_key:
                raise ConfigurationError("SHEET2SQL_API_KEY")
            self._client = OpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                timeout=self.settings.request_timeout_s,
                max_retries=self.settings.max_retries,
            )
        return self._client

    def complete(
        self,
        messages: list[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """
        Request one completion.

        Args:
            messages: Ordered role-tagged messages.
            temperature: Sampling temperature.
            max_tokens: Completion token limit.

        Returns:
            The completion text.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the request fails or returns no text.
        """
        client = self._get_client()

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.error("Completion request to %s failed: %s", self.model, e)
            raise CompletionError(model=self.model, reason=str(e)) from e

        if not response.choices or not response.choices[0].message.content:
            logger.error("Completion from %s contained no text", self.model)
            raise CompletionError(model=self.model, reason="Empty completion")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                "Completion from %s: %s prompt / %s completion tokens",
                self.model,
                usage.prompt_tokens,
                usage.completion_tokens,
            )

        return response.choices[0].message.content
