"""Sentence-aware character chunker with word-aligned overlap.

Splits text into sentence-like units, then greedily packs whole sentences
into chunks of at most ``chunk_size`` characters. A chunk boundary never
falls inside a sentence, so a single sentence longer than ``chunk_size``
becomes an oversized chunk of its own. Each new chunk starts with the tail
of the previous one.
"""

from __future__ import annotations

import logging

from kbrag.chunking.base import BaseChunker
from kbrag.config import ChunkingSettings

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 200

_TERMINATORS = frozenset(".!?")


def _normalize_params(chunk_size: int, overlap: int) -> tuple[int, int]:
    if chunk_size <= 0:
        chunk_size = DEFAULT_CHUNK_SIZE
    if overlap < 0:
        overlap = 0
    if overlap >= chunk_size:
        overlap = chunk_size // 2
    return chunk_size, overlap


def split_sentences(text: str) -> list[str]:
    """Split text into sentence-like units in one left-to-right pass.

    A boundary follows ``.``, ``!`` or ``?`` when the next character is
    whitespace and the next non-whitespace character is uppercase, or when
    the terminator ends the text. A blank line (two consecutive newlines)
    is also a boundary and is dropped. Units are trimmed; empty ones are
    discarded.
    """
    sentences: list[str] = []
    buffer: list[str] = []
    n = len(text)

    def flush() -> None:
        sentence = "".join(buffer).strip()
        if sentence:
            sentences.append(sentence)
        buffer.clear()

    i = 0
    while i < n:
        ch = text[i]
        buffer.append(ch)

        if ch in _TERMINATORS:
            if i + 1 == n:
                flush()
            elif text[i + 1].isspace():
                j = i + 1
                while j < n and text[j].isspace():
                    j += 1
                if j < n and text[j].isupper():
                    flush()
        elif ch == "\n" and i + 1 < n and text[i + 1] == "\n":
            flush()
            i += 1  # swallow the second newline

        i += 1

    flush()
    return sentences


def overlap_tail(chunk: str, overlap: int) -> str:
    """Return the last ``overlap`` characters of ``chunk``, word-aligned.

    If the tail contains a space within its first half, the tail starts
    after that space so the overlap does not open with a partial word.
    """
    if overlap <= 0 or not chunk:
        return ""
    if overlap >= len(chunk):
        return chunk

    tail = chunk[len(chunk) - overlap:]
    space_idx = tail.find(" ")
    if 0 < space_idx < len(tail) // 2:
        return tail[space_idx:].strip()
    return tail.strip()


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Split ``text`` into overlapping chunks of whole sentences.

    Out-of-range parameters are normalized rather than rejected:
    ``chunk_size <= 0`` uses the default, a negative overlap becomes 0 and
    an overlap of at least ``chunk_size`` is halved to ``chunk_size // 2``.
    Empty or whitespace-only text yields no chunks.
    """
    chunk_size, overlap = _normalize_params(chunk_size, overlap)

    text = text.strip()
    if not text:
        return []

    chunks: list[str] = []
    current = ""
    current_size = 0

    for sentence in split_sentences(text):
        sentence_len = len(sentence)

        if current_size > 0 and current_size + sentence_len > chunk_size:
            closed = current.strip()
            chunks.append(closed)
            current = overlap_tail(closed, overlap) if overlap > 0 else ""
            current_size = len(current)

        if current:
            current += " "
            current_size += 1
        current += sentence
        current_size += sentence_len

    if current:
        chunks.append(current.strip())

    return chunks


class TextChunker(BaseChunker):
    """Chunker for plain knowledge-base documents."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP):
        self.chunk_size, self.overlap = _normalize_params(chunk_size, overlap)

    @classmethod
    def from_settings(cls, settings: ChunkingSettings) -> TextChunker:
        return cls(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap)

    def split(self, text: str) -> list[str]:
        logger.debug("Splitting %d chars (size=%d, overlap=%d)", len(text), self.chunk_size, self.overlap)
        return chunk_text(text, self.chunk_size, self.overlap)
