"""Tests for answer generation. The chat model is always mocked."""

from unittest.mock import patch

import pytest
from langchain_core.messages import AIMessage

from docrag.config import LLMConfig, RetryConfig
from docrag.errors import ConfigurationError, GenerationError, MissingCredentialError
from docrag.generation.generate import SimpleGenerator, _message_text
from docrag.generation.prompts import DEFAULT_ROLE
from docrag.models.result import RetrievalResult


@pytest.fixture
def generator(google_llm_config, no_wait_retry):
    return SimpleGenerator(google_llm_config, no_wait_retry)


def test_prompt_layout(generator, sample_retrieval_result):
    """Role, instructions, context blocks best-first, then the question."""
    prompt = generator.build_prompt("How are orders routed?", sample_retrieval_result)

    assert prompt.startswith(DEFAULT_ROLE + "\n")
    assert "based strictly on the context provided below" in prompt
    assert "say 'I don't know'" in prompt
    assert prompt.endswith("Question: How are orders routed?")
    assert (
        "Context:\n"
        "Orders are routed by the brokering engine.\n\n"
        "Each routing rule filters facilities by inventory.\n\n"
        "Inventory is reserved when an order is brokered.\n\n"
        "Question:"
    ) in prompt


def test_prompt_orders_context_by_score(generator, sample_retrieval_result):
    shuffled = RetrievalResult(
        documents=list(reversed(sample_retrieval_result.documents)),
        query_used="q",
    )
    prompt = generator.build_prompt("q", shuffled)
    assert prompt.index("brokering engine") < prompt.index("reserved when")


def test_custom_role(google_llm_config, sample_retrieval_result):
    generator = SimpleGenerator(google_llm_config, role="You are the HotWax Commerce assistant.")
    prompt = generator.build_prompt("q", sample_retrieval_result)
    assert prompt.startswith("You are the HotWax Commerce assistant.\n")


def test_generate(generator, mock_llm, sample_retrieval_result):
    with patch("docrag.generation.generate.get_llm", return_value=mock_llm) as mock_get_llm:
        result = generator.generate("How are orders routed?", sample_retrieval_result)

    assert result.answer == "Orders are routed by the brokering engine."
    assert result.model == "google/gemini-2.0-flash"
    assert result.sources == ["docs/routing.md", "docs/inventory.txt"]
    mock_get_llm.assert_called_once()
    mock_llm.invoke.assert_called_once()
    assert "How are orders routed?" in mock_llm.invoke.call_args.args[0]


def test_model_built_once(generator, mock_llm, sample_retrieval_result):
    with patch("docrag.generation.generate.get_llm", return_value=mock_llm) as mock_get_llm:
        generator.generate("first", sample_retrieval_result)
        generator.generate("second", sample_retrieval_result)
    mock_get_llm.assert_called_once()


def test_generate_requires_context(generator):
    with pytest.raises(ValueError):
        generator.generate("q", RetrievalResult(documents=[], query_used="q"))


def test_transient_failure_is_retried_then_wrapped(generator, mock_llm, sample_retrieval_result):
    mock_llm.invoke.side_effect = ConnectionError("connection reset")

    with patch("docrag.generation.generate.get_llm", return_value=mock_llm):
        with pytest.raises(GenerationError, match="connection reset"):
            generator.generate("q", sample_retrieval_result)

    assert mock_llm.invoke.call_count == 2


def test_permanent_failure_is_not_retried(generator, mock_llm, sample_retrieval_result):
    """Auth and quota errors fail on the first call."""
    mock_llm.invoke.side_effect = RuntimeError("API key not valid")

    with patch("docrag.generation.generate.get_llm", return_value=mock_llm):
        with pytest.raises(GenerationError, match="API key not valid"):
            generator.generate("q", sample_retrieval_result)

    mock_llm.invoke.assert_called_once()


def test_model_build_failure_is_configuration_error(generator, sample_retrieval_result):
    with patch("docrag.generation.generate.get_llm", side_effect=ImportError("no langchain_openai")):
        with pytest.raises(ConfigurationError, match="no langchain_openai"):
            generator.generate("q", sample_retrieval_result)


def test_transient_failure_recovers(generator, mock_llm, sample_retrieval_result):
    mock_llm.invoke.side_effect = [TimeoutError("slow"), AIMessage(content="Recovered.")]

    with patch("docrag.generation.generate.get_llm", return_value=mock_llm):
        result = generator.generate("q", sample_retrieval_result)

    assert result.answer == "Recovered."


def test_missing_key_is_not_wrapped(sample_retrieval_result):
    """A missing credential surfaces as itself, not as a generation failure."""
    generator = SimpleGenerator(LLMConfig(api_key=None), RetryConfig(attempts=1))
    with pytest.raises(MissingCredentialError, match="GOOGLE_AI_GEMINI_API_KEY"):
        generator.generate("q", sample_retrieval_result)


def test_message_text_variants():
    assert _message_text(AIMessage(content="plain")) == "plain"
    blocks = AIMessage(content=[{"type": "text", "text": "a"}, "b", {"type": "image_url"}])
    assert _message_text(blocks) == "ab"
    assert _message_text("raw") == "raw"
