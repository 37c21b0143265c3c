"""Segmenter — splits a raw text blob into candidate spans for the record builder."""
import re
from typing import List

from drawbom.config import MIN_SPAN_LENGTH

_PARAGRAPH_BREAK = re.compile(r"\n\n|\r\n\r\n")
_LINE_BREAK = re.compile(r"\r?\n")


def segment_text(text: str) -> List[str]:
    """
    Paragraphs (blank-line separated) → trimmed lines of at least
    MIN_SPAN_LENGTH characters, in document order.

    Non-empty input always yields at least one span: if every line is
    discarded, the whole trimmed blob becomes the single span.
    """
    paragraphs = [p for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
    if not paragraphs:
        paragraphs = [text]

    spans: List[str] = []
    for paragraph in paragraphs:
        for line in _LINE_BREAK.split(paragraph):
            line = line.strip()
            if len(line) >= MIN_SPAN_LENGTH:
                spans.append(line)

    stripped = text.strip()
    if not spans and stripped:
        spans.append(stripped)
    return spans
