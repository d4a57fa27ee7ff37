"""Text chunker — splits normalized resume text into overlapping retrieval units.

Chunks are exact slices of the normalized text. Each chunk records how many
leading characters it shares with its predecessor, so joining every chunk's
non-overlapping tail reproduces the normalized text.
"""

import bisect
import logging
import re
from dataclasses import dataclass

from resume_rag.domain.entities import Chunk
from resume_rag.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

# ── Chunking constants ──────────────────────────────────────────────
_DEFAULT_MAX_CHUNK_SIZE = 1000
_DEFAULT_OVERLAP_SIZE = 100

_HORIZONTAL_SPACE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" ?\n ?")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_PARAGRAPH = re.compile(r"\S(?:.*?\S)?(?=\n\n|\Z)", re.DOTALL)
_WORD = re.compile(r"\S+")


@dataclass(frozen=True)
class ChunkingOptions:
    max_chunk_size: int = _DEFAULT_MAX_CHUNK_SIZE
    overlap_size: int = _DEFAULT_OVERLAP_SIZE
    preserve_paragraph_boundaries: bool = True

    def __post_init__(self) -> None:
        if self.max_chunk_size < 1:
            raise ValidationError("max_chunk_size must be positive")
        if not 0 <= self.overlap_size < self.max_chunk_size:
            raise ValidationError("overlap_size must be in [0, max_chunk_size)")


def normalize_text(text: str) -> str:
    """Collapse horizontal whitespace and cap blank-line runs at one."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _HORIZONTAL_SPACE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


class TextChunker:
    """Deterministic chunker with paragraph and word modes.

    Paragraph mode packs whole paragraphs (blank-line separated); a paragraph
    longer than ``max_chunk_size`` becomes its own oversized chunk instead of
    being cut. Word mode packs whitespace-delimited words. In both modes a
    new chunk restarts at a word boundary at least ``overlap_size`` characters
    before the previous chunk's end.
    """

    def __init__(self, options: ChunkingOptions | None = None):
        self._options = options or ChunkingOptions()

    def chunk(self, text: str, options: ChunkingOptions | None = None) -> list[Chunk]:
        opts = options or self._options
        normalized = normalize_text(text)
        if not normalized:
            return []

        unit_pattern = _PARAGRAPH if opts.preserve_paragraph_boundaries else _WORD
        units = [(m.start(), m.end()) for m in unit_pattern.finditer(normalized)]
        word_starts = [m.start() for m in _WORD.finditer(normalized)]

        spans = self._pack(normalized, units, word_starts, opts)

        chunks: list[Chunk] = []
        prev_start = prev_end = 0
        for index, (start, end) in enumerate(spans):
            chunks.append(
                Chunk(
                    index=index,
                    text=normalized[start:end],
                    offset=start - prev_start,
                    overlap=max(prev_end - start, 0) if index else 0,
                )
            )
            prev_start, prev_end = start, end

        logger.debug(
            "Chunked %d chars into %d chunks (max=%d, overlap=%d, paragraphs=%s)",
            len(normalized),
            len(chunks),
            opts.max_chunk_size,
            opts.overlap_size,
            opts.preserve_paragraph_boundaries,
        )
        return chunks

    def _pack(
        self,
        text: str,
        units: list[tuple[int, int]],
        word_starts: list[int],
        opts: ChunkingOptions,
    ) -> list[tuple[int, int]]:
        """Greedily group units into (start, end) spans of ``text``."""
        max_size = opts.max_chunk_size
        spans: list[tuple[int, int]] = []
        start = 0
        i = 0

        while i < len(units):
            # Every chunk takes at least one new unit, even an oversized one
            end = units[i][1]
            i += 1
            while i < len(units) and units[i][1] - start <= max_size:
                end = units[i][1]
                i += 1

            if i == len(units):
                spans.append((start, len(text)))
                break

            next_start = self._next_start(start, end, units[i], word_starts, opts)
            if next_start == end and units[i][0] - start <= max_size:
                # No overlap: the separator stays with the closing chunk
                end = next_start = units[i][0]
            spans.append((start, end))
            start = next_start

        return spans

    @staticmethod
    def _next_start(
        start: int,
        end: int,
        next_unit: tuple[int, int],
        word_starts: list[int],
        opts: ChunkingOptions,
    ) -> int:
        """Pick where the chunk after ``[start, end)`` begins."""
        if opts.overlap_size == 0:
            return end

        # Latest word start that still leaves overlap_size characters
        idx = bisect.bisect_right(word_starts, end - opts.overlap_size) - 1
        if idx < 0 or word_starts[idx] <= start:
            return end
        candidate = word_starts[idx]

        unit_start, unit_end = next_unit
        if unit_end - candidate > opts.max_chunk_size and unit_end - unit_start <= opts.max_chunk_size:
            # Trim the overlap so the next unit still fits
            idx = bisect.bisect_left(word_starts, unit_end - opts.max_chunk_size)
            if idx < len(word_starts) and word_starts[idx] < end:
                return word_starts[idx]
            return end
        return candidate
