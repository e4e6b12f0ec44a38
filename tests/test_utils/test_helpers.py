"""Tests for utility helpers."""

from unittest.mock import MagicMock, patch

import pytest
from tenacity import Retrying

from docrag.config import LLMConfig, RetryConfig
from docrag.errors import MissingCredentialError
from docrag.utils.helpers import build_retrying, get_llm, make_record_id, truncate_text
from docrag.utils.signals import CancellationToken


def test_get_llm_requires_gemini_key():
    with pytest.raises(MissingCredentialError) as exc_info:
        get_llm(LLMConfig(provider="google", api_key=None))
    assert str(exc_info.value) == "Please set the GOOGLE_AI_GEMINI_API_KEY environment variable."


def test_get_llm_rejects_blank_key():
    with pytest.raises(MissingCredentialError):
        get_llm(LLMConfig(provider="google", api_key="   "))


@patch("langchain_google_genai.ChatGoogleGenerativeAI")
def test_get_llm_google(mock_cls, google_llm_config):
    get_llm(google_llm_config)

    kwargs = mock_cls.call_args.kwargs
    assert kwargs["model"] == "gemini-2.0-flash"
    assert kwargs["google_api_key"].get_secret_value() == "test-key"
    assert kwargs["max_output_tokens"] == 1024
    assert kwargs["timeout"] == 60.0
    assert kwargs["max_retries"] == 0


def test_get_llm_unknown_provider():
    config = LLMConfig()
    config.provider = "unsupported"
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        get_llm(config)


def test_build_retrying_stops_after_attempts():
    retrying = build_retrying(RetryConfig(attempts=3, min_wait=0.0, max_wait=0.0))
    assert isinstance(retrying, Retrying)

    fn = MagicMock(side_effect=ConnectionError("down"))
    with pytest.raises(ConnectionError):
        retrying(fn)
    assert fn.call_count == 3


def test_build_retrying_only_retries_listed_errors():
    retrying = build_retrying(
        RetryConfig(attempts=3, min_wait=0.0, max_wait=0.0), retry_on=(ConnectionError,)
    )
    fn = MagicMock(side_effect=KeyError("bug"))
    with pytest.raises(KeyError):
        retrying(fn)
    assert fn.call_count == 1


def test_make_record_id_is_stable():
    first = make_record_id("docs/a.md", 0, "text")
    assert first == make_record_id("docs/a.md", 0, "text")
    assert len(first) == 64


def test_make_record_id_distinguishes_fields():
    base = make_record_id("docs/a.md", 0, "text")
    assert make_record_id("docs/b.md", 0, "text") != base
    assert make_record_id("docs/a.md", 10, "text") != base
    assert make_record_id("docs/a.md", 0, "other") != base


def test_truncate_text():
    assert truncate_text("short") == "short"
    assert truncate_text("a  b\n c") == "a b c"
    assert truncate_text("word " * 100, max_chars=20).endswith("...")
    assert len(truncate_text("word " * 100, max_chars=20)) <= 23


def test_cancellation_token():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled


def test_cancellation_token_restores_handlers():
    import signal

    before = signal.getsignal(signal.SIGTERM)
    token = CancellationToken()
    with token.installed():
        assert signal.getsignal(signal.SIGTERM) == token._handle
    assert signal.getsignal(signal.SIGTERM) == before


def test_signal_sets_flag():
    import signal

    token = CancellationToken()
    token._handle(signal.SIGTERM, None)
    assert token.cancelled
