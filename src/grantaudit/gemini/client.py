"""Gemini generative client using the google-genai SDK."""
from typing import Any, Optional, Sequence, Type, Union

import httpx
from google import genai
from google.genai import errors, types
from pydantic import BaseModel

from grantaudit.config.settings import AppSettings, ModelConfiguration
from grantaudit.utils.exceptions import LLMError, RetryableLLMError
from grantaudit.utils.logger import get_logger
from grantaudit.utils.retry import retry_with_backoff

logger = get_logger()

Contents = Union[str, Sequence[Any]]


class GeminiClient:
    """
    Thin wrapper around ``genai.Client``.

    Built once per process and passed to the extractor and the OCR client.
    Transient failures (rate limits, 5xx, timeouts) are retried with backoff;
    once retries are exhausted a ``RetryableLLMError`` escapes, anything else
    surfaces as ``LLMError`` straight away.
    """

    TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}

    def __init__(self, api_key: str, settings: AppSettings, client: Optional[genai.Client] = None):
        self.settings = settings
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(settings.llm_timeout_seconds * 1000))
        )
        self._generate_with_retry = retry_with_backoff(
            max_retries=settings.llm_max_retries,
            initial_delay=settings.llm_initial_delay_seconds,
            backoff_factor=settings.llm_backoff_factor,
            max_delay=settings.llm_max_delay_seconds,
            retryable_exceptions=(RetryableLLMError,)
        )(self._generate_once)

    def generate(
        self,
        instruction: str,
        contents: Contents,
        configuration: ModelConfiguration,
        response_schema: Optional[Type[BaseModel]] = None
    ) -> str:
        """
        Run one generation and return the response text.

        Args:
            instruction: System instruction
            contents: Prompt text, or a list of parts (inline bytes and text)
            configuration: Model, temperature, output budget and schema switch
            response_schema: Pydantic schema applied when the configuration is strict

        Returns:
            Response text, expected to be JSON when a schema is applied
        """
        return self._generate_with_retry(instruction, contents, configuration, response_schema)

    @staticmethod
    def inline_document(document: bytes, mime_type: str) -> types.Part:
        """Wrap raw bytes as an inline content part."""
        return types.Part.from_bytes(data=document, mime_type=mime_type)

    def _generate_once(
        self,
        instruction: str,
        contents: Contents,
        configuration: ModelConfiguration,
        response_schema: Optional[Type[BaseModel]]
    ) -> str:
        options = dict(
            system_instruction=instruction,
            temperature=configuration.temperature,
            max_output_tokens=configuration.max_output_tokens
        )
        if configuration.strict_schema and response_schema is not None:
            options.update(response_mime_type="application/json", response_schema=response_schema)

        try:
            response = self.client.models.generate_content(
                model=configuration.model,
                contents=contents,
                config=types.GenerateContentConfig(**options)
            )
        except errors.APIError as e:
            if e.code in self.TRANSIENT_STATUS_CODES:
                raise RetryableLLMError(f"{configuration.model} unavailable ({e.code}): {e.message}") from e
            raise LLMError(f"{configuration.model} rejected the request ({e.code}): {e.message}") from e
        except httpx.TransportError as e:
            raise RetryableLLMError(f"{configuration.model} transport failure: {e}") from e

        self._warn_if_truncated(response, configuration)

        if not response.text:
            raise LLMError(f"{configuration.model} returned an empty response")
        return response.text

    @staticmethod
    def _warn_if_truncated(response: Any, configuration: ModelConfiguration) -> None:
        candidates = getattr(response, "candidates", None) or []
        if candidates and candidates[0].finish_reason == types.FinishReason.MAX_TOKENS:
            logger.warning(
                f"{configuration.name}: output hit max_output_tokens={configuration.max_output_tokens}, "
                f"response is truncated"
            )
