"""
Utility functions.

Usage:
    from docrag.utils import get_llm, build_retrying, make_record_id
"""

from .helpers import build_retrying, get_llm, make_record_id, truncate_text

__all__ = ["build_retrying", "get_llm", "make_record_id", "truncate_text"]
