"""
Answer generation from retrieved context.

Takes the question plus the retrieved segments, assembles one prompt and
sends it to the chat model:

    generator = SimpleGenerator(LLMConfig(api_key="..."), RetryConfig())
    result = generator.generate("How are orders routed?", retrieval)
    print(result.answer)

The chat model is built on the first call, not in the constructor, so
a missing credential only matters when a model call is actually needed.
Calls time out after LLMConfig.timeout seconds. Timeouts and connection
errors are retried with the tenacity policy from RetryConfig; anything
else, or a call still failing after the last attempt, becomes GenerationError.
"""

from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from loguru import logger

from docrag.base.generator import BaseGenerator
from docrag.config import LLMConfig, RetryConfig
from docrag.errors import ConfigurationError, GenerationError
from docrag.generation.prompts import ANSWER_PROMPT, CONTEXT_SEPARATOR, DEFAULT_ROLE
from docrag.models.result import GenerationResult, RetrievalResult
from docrag.utils.helpers import build_retrying, get_llm

# Network-level failures worth another attempt. Auth, quota and request
# errors fail on the first call.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (TimeoutError, ConnectionError)


class SimpleGenerator(BaseGenerator):
    """
    Context + question → answer, in one model call.

    How it works:
        1. Joins the retrieved segment texts with blank lines, best match first
        2. Fills the fixed template: role, context, question
        3. Calls the model and returns a GenerationResult
    """

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        role: str = DEFAULT_ROLE,
        retry_on: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
    ):
        self._config = llm_config or LLMConfig()
        self._retry_config = retry_config or RetryConfig()
        self._role = role
        self._retry_on = retry_on
        self._model_name = f"{self._config.provider.value}/{self._config.model_name}"
        self._llm: Optional[BaseChatModel] = None

    @property
    def model_name(self) -> str:
        return self._model_name

    def build_prompt(self, question: str, retrieval: RetrievalResult) -> str:
        """Fill the answer template with the retrieved context and the question."""
        documents = sorted(retrieval.documents, key=lambda d: d.score, reverse=True)
        context = CONTEXT_SEPARATOR.join(doc.chunk.content for doc in documents)
        return ANSWER_PROMPT.format(role=self._role, context=context, question=question)

    def generate(self, query: str, retrieval: RetrievalResult) -> GenerationResult:
        """
        Generate an answer grounded in retrieved segments.

        Raises:
            ValueError: If retrieval holds no documents.
            MissingCredentialError: If the model has no credential.
            GenerationError: If the model call fails after retries.
        """
        if not retrieval.documents:
            raise ValueError("generate() needs at least one retrieved document")

        prompt = self.build_prompt(query, retrieval)
        answer = self.generate_text(prompt)

        sources = []
        for doc in retrieval.documents:
            source = doc.chunk.metadata.source
            if source and source not in sources:
                sources.append(source)

        return GenerationResult(answer=answer, sources=sources, model=self._model_name)

    def generate_text(self, prompt: str) -> str:
        llm = self._get_llm()
        retrying = build_retrying(self._retry_config, retry_on=self._retry_on)

        logger.debug(f"[generate] {self._model_name} | prompt={len(prompt)} chars")
        try:
            response = retrying(llm.invoke, prompt)
        except Exception as e:
            raise GenerationError(f"Error calling {self._model_name}: {e}") from e

        return _message_text(response)

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            try:
                self._llm = get_llm(self._config)
            except (ImportError, ValueError) as e:
                raise ConfigurationError(f"Could not build {self._model_name}: {e}") from e
        return self._llm


def _message_text(response) -> str:
    """
    Extract plain text from a chat model response.

    Most providers return a string in .content; some return a list of
    content blocks, whose text parts are concatenated.
    """
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)
