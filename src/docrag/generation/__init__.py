"""
Answer generation.

Usage:
    from docrag.generation import SimpleGenerator, NO_CONTEXT_RESPONSE
"""

from .generate import SimpleGenerator
from .prompts import ANSWER_PROMPT, NO_CONTEXT_RESPONSE

__all__ = [
    "SimpleGenerator",
    "ANSWER_PROMPT",
    "NO_CONTEXT_RESPONSE",
]
