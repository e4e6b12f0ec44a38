"""
Shared utility functions.

Helpers used across docrag: chat model factory, retry policy and record ids.
"""

import hashlib

from langchain_core.language_models.chat_models import BaseChatModel
from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docrag.config import LLMConfig, LLMProvider, RetryConfig
from docrag.errors import MissingCredentialError

GEMINI_KEY_VARIABLE = "GOOGLE_AI_GEMINI_API_KEY"


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a LangChain chat model based on config.

    Same pattern as the embedding factory: lazy imports so you only
    need the package for the provider you actually use.

    Retries are left to the caller's tenacity policy, so the client's own
    retry loop is switched off.

    Args:
        config: LLMConfig with provider, model_name, api_key, temperature,
            max_tokens and timeout.

    Returns:
        A LangChain BaseChatModel instance.

    Raises:
        MissingCredentialError: If the Google provider has no api_key.
        ValueError: If the provider is not recognized.
    """
    if config.provider == LLMProvider.GOOGLE:
        if config.api_key is None or not config.api_key.get_secret_value().strip():
            raise MissingCredentialError(GEMINI_KEY_VARIABLE)

        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=config.model_name,
            google_api_key=config.api_key,
            temperature=config.temperature,
            max_output_tokens=config.max_tokens,
            timeout=config.timeout,
            max_retries=0,
        )

    elif config.provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        kwargs = {"api_key": config.api_key} if config.api_key is not None else {}
        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            max_retries=0,
            **kwargs,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        from langchain_anthropic import ChatAnthropic

        kwargs = {"api_key": config.api_key} if config.api_key is not None else {}
        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            max_retries=0,
            **kwargs,
        )

    else:
        raise ValueError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: 'google', 'openai', 'anthropic'."
        )


def build_retrying(
    config: RetryConfig,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> Retrying:
    """
    Build a tenacity Retrying object from a RetryConfig.

    Usage:
        retrying = build_retrying(config.retry, retry_on=(OperationalError,))
        rows = retrying(self._query, vector)

    The last exception is re-raised unchanged once attempts run out.
    """
    return Retrying(
        stop=stop_after_attempt(config.attempts),
        wait=wait_exponential(multiplier=config.min_wait, min=config.min_wait, max=config.max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    name = getattr(retry_state.fn, "__qualname__", "call")
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"[retry] {name} failed (attempt {retry_state.attempt_number}): {exc} "
        f"| retrying in {wait:.1f}s"
    )


def make_record_id(source: str, start_index: int, text: str) -> str:
    """
    Stable identifier for a stored segment.

    Hashes source path, character offset and text, so re-ingesting an
    unchanged file maps every segment onto its existing record.
    """
    digest = hashlib.sha256()
    digest.update(source.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(str(start_index).encode("ascii"))
    digest.update(b"\x00")
    digest.update(text.encode("utf-8"))
    return digest.hexdigest()


def truncate_text(text: str, max_chars: int = 300) -> str:
    """Truncate text for display purposes."""
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."
