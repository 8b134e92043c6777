import asyncio
from typing import Any, Dict, List, Optional, Union

import httpx
from httpx import HTTPStatusError, TimeoutException

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import (
    APIClientError,
    APITimeoutError,
    ConfigurationError,
    QuotaExceededError,
)
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseLLMClient:
    """Base client for LLM API interactions.

    Handles common logic for HTTP requests, retries, timeout management,
    and error logging.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 2,
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for authentication
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = LOGGER

    async def call_api(
        self,
        endpoint: str = "",
        method: str = "POST",
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Call the API with retry logic.

        Args:
            endpoint: API endpoint (appended to base_url)
            method: HTTP method (POST, GET, etc.)
            payload: JSON payload
            headers: Additional headers

        Returns:
            Parsed JSON response

        Raises:
            APIClientError: If the API call fails after retries
            APITimeoutError: If the API call times out after retries
            QuotaExceededError: If the provider keeps rate limiting or the quota is exhausted
        """
        url = f"{self.base_url}{endpoint}" if endpoint else self.base_url

        default_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            default_headers.update(headers)

        self.logger.debug(
            f"Calling LLM API: {url}",
            extra={"method": method, "timeout": self.timeout}
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                try:
                    if method.upper() == "GET":
                        response = await client.get(url, headers=default_headers, params=payload)
                    else:
                        response = await client.post(url, headers=default_headers, json=payload)

                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt, url)

                except TimeoutException as e:
                    await self._handle_timeout_error(e, attempt, url)

                except httpx.RequestError as e:
                    await self._handle_generic_error(e, attempt, url)

        raise APIClientError(f"Failed to call API {url} after {self.max_retries} attempts")

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int, url: str):
        """Handle HTTP status errors."""
        status_code = error.response.status_code
        error_body = error.response.text or ""

        self.logger.warning(
            f"API HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={
                "url": url,
                "status_code": status_code,
                "error_body": error_body[:500],
            }
        )

        # An exhausted quota also comes back as 429 but never recovers by waiting
        if "insufficient_quota" in error_body:
            raise QuotaExceededError(
                "LLM provider quota exhausted", original_error=error, status_code=status_code
            ) from error

        # Don't retry on client errors (4xx) unless it's rate limiting (429)
        if 400 <= status_code < 500 and status_code != 429:
            raise APIClientError(
                f"API Client Error {status_code}: {error_body[:500]}",
                original_error=error,
                status_code=status_code,
            ) from error

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        elif status_code == 429:
            raise QuotaExceededError(
                "LLM provider rate limit reached", original_error=error, status_code=status_code
            ) from error
        else:
            raise APIClientError(
                f"API HTTP Error {status_code} after retries",
                original_error=error,
                status_code=status_code,
            ) from error

    async def _handle_timeout_error(self, error: TimeoutException, attempt: int, url: str):
        """Handle timeout errors."""
        self.logger.warning(
            f"API Timeout (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url}
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APITimeoutError(
                f"API Timeout after {self.max_retries} attempts", original_error=error
            ) from error

    async def _handle_generic_error(self, error: Exception, attempt: int, url: str):
        """Handle connection level errors."""
        self.logger.warning(
            f"API Request Error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "error": str(error)}
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(f"API Error: {str(error)}", original_error=error) from error

    async def _wait_before_retry(self, attempt: int):
        """Exponential backoff wait."""
        wait_time = self.retry_delay * (2 ** attempt)
        await asyncio.sleep(wait_time)


class OpenAIChatClient:
    """Client for OpenAI-compatible chat completion APIs."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1/chat/completions",
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 2,
    ):
        """Initialize the chat client.

        Args:
            api_key: Provider API key
            model: Model name to use
            base_url: Full chat completions URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )

        LOGGER.info(f"Initialized chat client with model {self.model}")

    async def generate_content(
        self,
        contents: Union[str, List[Union[str, Dict[str, Any]]]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate content with the configured chat model.

        Args:
            contents: Input content (string or list of parts)
            system_instruction: Optional system instruction
            generation_config: Optional config (temperature, max_output_tokens, response_mime_type)

        Returns:
            Generated text response ("" when the model returned nothing)

        Raises:
            ConfigurationError: If no API key is configured
            APIClientError: If generation fails
            QuotaExceededError: If the provider quota is exhausted
        """
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})

        if isinstance(contents, str):
            user_content = contents
        else:
            user_content = ""
            for part in contents:
                if isinstance(part, str):
                    user_content += part
                elif isinstance(part, dict) and "text" in part:
                    user_content += part["text"]
        messages.append({"role": "user", "content": user_content})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.0,
        }

        if generation_config:
            if "temperature" in generation_config:
                payload["temperature"] = generation_config["temperature"]
            if "max_output_tokens" in generation_config:
                payload["max_tokens"] = generation_config["max_output_tokens"]
            if generation_config.get("response_mime_type") == "application/json":
                payload["response_format"] = {"type": "json_object"}
                # json_object mode requires the word JSON in the prompt
                if not system_instruction:
                    messages.insert(0, {"role": "system", "content": "Respond with valid JSON only."})

        response = await self.client.call_api(method="POST", payload=payload)

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected chat completion response format: {str(response)[:500]}")
            raise APIClientError("Invalid response format from chat completion API")

        content = (choices[0].get("message") or {}).get("content") or ""
        if not content:
            LOGGER.warning("Empty response from chat completion API")
        return content


def get_chat_client() -> OpenAIChatClient:
    """Build the chat client from application settings."""
    return OpenAIChatClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_api_url,
        timeout=settings.http_timeout,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay,
    )
