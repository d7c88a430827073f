"""LLM adapter for text generation: OpenAI and Anthropic chat APIs."""

import asyncio
import json
import re
from typing import Any

import httpx

from reelswipe.config import config
from reelswipe.logging import get_logger

logger = get_logger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_TIMEOUT = 45.0
MAX_RETRIES = 2
BASE_BACKOFF = 1.0

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


class LLMDisabledError(Exception):
    """Raised when the LLM is disabled or has no API key configured."""


class LLMError(Exception):
    """Base exception for LLM API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LLMRateLimitError(LLMError):
    """Rate limit exceeded."""

    def __init__(self, retry_after: int | None = None):
        super().__init__("Rate limit exceeded", status_code=429)
        self.retry_after = retry_after


def _raise_for_status(response: httpx.Response, label: str) -> None:
    """Translate a non-200 provider response into a typed error."""
    if response.status_code == 429:
        retry_after = response.headers.get("retry-after")
        raise LLMRateLimitError(
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
        )

    if response.status_code >= 500:
        raise LLMError(
            f"{label} server error: {response.status_code}",
            status_code=response.status_code,
        )

    try:
        error_msg = response.json().get("error", {}).get(
            "message", f"HTTP {response.status_code}"
        )
    except (ValueError, AttributeError):
        error_msg = f"HTTP {response.status_code}"

    raise LLMError(error_msg, status_code=response.status_code)


async def _call_openai(
    client: httpx.AsyncClient,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    temperature: float,
) -> str:
    """Call OpenAI-compatible API."""
    headers = {
        "Authorization": f"Bearer {config.openai_api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": config.openai_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }

    response = await client.post(OPENAI_API_URL, headers=headers, json=payload)
    if response.status_code != 200:
        _raise_for_status(response, "OpenAI")

    data = response.json()
    choices = data.get("choices", [])
    if not choices:
        raise LLMError("Empty response from OpenAI")
    logger.debug(f"OpenAI tokens: {data.get('usage', {}).get('total_tokens', 'N/A')}")
    return (choices[0].get("message", {}).get("content") or "").strip()


async def _call_anthropic(
    client: httpx.AsyncClient,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    temperature: float,
) -> str:
    """Call Anthropic Messages API."""
    headers = {
        "x-api-key": config.anthropic_api_key,
        "anthropic-version": "2023-06-01",
        "Content-Type": "application/json",
    }
    payload = {
        "model": config.anthropic_model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_prompt}],
    }

    response = await client.post(ANTHROPIC_API_URL, headers=headers, json=payload)
    if response.status_code != 200:
        _raise_for_status(response, "Anthropic")

    data = response.json()
    text_parts = [
        block.get("text", "")
        for block in data.get("content", [])
        if block.get("type") == "text"
    ]
    usage = data.get("usage", {})
    logger.debug(
        f"Anthropic tokens: in={usage.get('input_tokens', '?')}, "
        f"out={usage.get('output_tokens', '?')}"
    )
    return "\n".join(text_parts).strip()


def llm_available() -> bool:
    """Whether generate_text can be attempted with the current configuration."""
    if not config.llm_enabled:
        return False
    if config.llm_provider == "anthropic":
        return bool(config.anthropic_api_key)
    return bool(config.openai_api_key)


async def generate_text(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 800,
    temperature: float = 0.7,
) -> str:
    """Generate text using configured LLM provider.

    Args:
        system_prompt: System instructions for the model
        user_prompt: User message/request
        max_tokens: Maximum tokens in response
        temperature: Sampling temperature

    Returns:
        Generated text

    Raises:
        LLMDisabledError: If LLM is disabled in config
        LLMError: On API error after retries exhausted
    """
    if not config.llm_enabled:
        raise LLMDisabledError("LLM is disabled in configuration")

    if config.llm_provider == "anthropic":
        if not config.anthropic_api_key:
            raise LLMDisabledError("ANTHROPIC_API_KEY is not configured")
        call_fn = _call_anthropic
        provider_label = f"Anthropic/{config.anthropic_model}"
    else:
        if not config.openai_api_key:
            raise LLMDisabledError("OPENAI_API_KEY is not configured")
        call_fn = _call_openai
        provider_label = f"OpenAI/{config.openai_model}"

    last_error: Exception | None = None

    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        for attempt in range(MAX_RETRIES):
            wait_time = BASE_BACKOFF * (2 ** attempt)
            try:
                return await call_fn(client, system_prompt, user_prompt, max_tokens, temperature)

            except LLMRateLimitError as e:
                wait_time = e.retry_after or wait_time
                logger.warning(
                    f"{provider_label} rate limited, retry after {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e

            except LLMError as e:
                if not e.status_code or e.status_code < 500:
                    raise
                logger.warning(
                    f"{provider_label} server error, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e

            except httpx.TimeoutException as e:
                logger.warning(
                    f"{provider_label} timeout, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e

            except httpx.RequestError as e:
                logger.warning(
                    f"{provider_label} request error: {e}, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e

            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(wait_time)

    raise LLMError(f"Max retries exceeded ({provider_label}): {last_error}")


def parse_json_response(text: str) -> Any:
    """Parse a model reply as JSON, tolerating markdown code fences.

    Raises:
        LLMError: If the reply is not valid JSON
    """
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMError(f"Model returned invalid JSON: {e}") from e
