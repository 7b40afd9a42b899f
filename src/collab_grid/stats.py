"""
Document statistics and substring search.
"""

import math
import re

from pydantic import BaseModel

WORDS_PER_MINUTE = 200


class DocumentStatistics(BaseModel):
    words: int
    chars_with_spaces: int
    chars_without_spaces: int
    lines: int
    reading_time: int  # minutes, never below 1


class SearchMatch(BaseModel):
    start: int
    end: int
    text: str


def count_words(text: str) -> int:
    return len(text.split())


def count_lines(text: str) -> int:
    """Number of lines; a trailing newline does not open a new line."""
    if not text:
        return 0
    return text.count("\n") + (0 if text.endswith("\n") else 1)


def estimate_reading_time(words: int) -> int:
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def calculate_document_stats(text: str) -> DocumentStatistics:
    words = count_words(text)
    return DocumentStatistics(
        words=words,
        chars_with_spaces=len(text),
        chars_without_spaces=sum(1 for c in text if not c.isspace()),
        lines=count_lines(text),
        reading_time=estimate_reading_time(words),
    )


def search_document(content: str, query: str, case_sensitive: bool = False) -> list[SearchMatch]:
    """All occurrences of ``query`` in ``content``, overlapping ones included.

    Offsets index into ``content`` itself, so ``content[m.start:m.end] == m.text``.
    """
    if not query:
        return []
    flags = 0 if case_sensitive else re.IGNORECASE
    pattern = re.compile(f"(?=({re.escape(query)}))", flags)
    return [
        SearchMatch(start=m.start(1), end=m.end(1), text=m.group(1))
        for m in pattern.finditer(content)
    ]
