import re
from bisect import bisect_right
from typing import List, Sequence, Tuple
from nltk.tokenize.punkt import PunktSentenceTokenizer

from docqa.core.config import settings
from docqa.models.data_models import Document, Segment

# Boundary levels, tried in order before falling back to a hard cut
PARAGRAPH, LINE, SENTENCE, WORD = "paragraph", "line", "sentence", "word"
DEFAULT_SEPARATORS: Tuple[str, ...] = (PARAGRAPH, LINE, SENTENCE, WORD)

# Untrained Punkt parameters; no 'punkt' data download required
_sentence_tokenizer = PunktSentenceTokenizer()

def normalize_text(text: str) -> str:
    """Unifies line endings and strips surrounding whitespace."""
    if not text:
        return ""
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()

def _cut_offsets(text: str, separator: str) -> List[int]:
    """Offsets where a new segment may begin for one boundary level, ascending."""
    if separator == PARAGRAPH:
        return [m.end() for m in re.finditer(r"\n\n+", text)]
    if separator == LINE:
        return [m.end() for m in re.finditer(r"\n", text)]
    if separator == SENTENCE:
        return [start for start, _ in _sentence_tokenizer.span_tokenize(text)][1:]
    if separator == WORD:
        return [m.end() for m in re.finditer(r" +", text)]
    raise ValueError(f"Unknown separator level: {separator!r}")

def chunk_spans(text: str, max_chunk_size: int, overlap_size: int,
                separators: Sequence[str] = DEFAULT_SEPARATORS) -> List[Tuple[int, int]]:
    """
    Computes (start, end) spans of overlapping segments over `text`.

    Each span is at most `max_chunk_size` long and the next one starts exactly
    `overlap_size` characters before the previous end. Cuts prefer the last
    paragraph break, then line break, then sentence start, then space inside
    the window; without any boundary the cut is hard at the size limit.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")
    if overlap_size < 0 or overlap_size >= max_chunk_size:
        raise ValueError("overlap_size must be >= 0 and smaller than max_chunk_size")

    length = len(text)
    if length == 0:
        return []

    levels = [_cut_offsets(text, sep) for sep in separators] if length > max_chunk_size else []
    spans: List[Tuple[int, int]] = []
    start = 0
    while length - start > max_chunk_size:
        low, high = start + overlap_size, start + max_chunk_size
        end = high
        for offsets in levels:
            i = bisect_right(offsets, high) - 1
            if i >= 0 and offsets[i] > low:
                end = offsets[i]
                break
        spans.append((start, end))
        start = end - overlap_size
    spans.append((start, length))
    return spans

def split_text(text: str, max_chunk_size: int = settings.CHUNK_SIZE, overlap_size: int = settings.CHUNK_OVERLAP,
               separators: Sequence[str] = DEFAULT_SEPARATORS) -> List[str]:
    """Splits normalized text into overlapping chunks. Empty text yields an empty list."""
    normalized = normalize_text(text)
    return [normalized[s:e] for s, e in chunk_spans(normalized, max_chunk_size, overlap_size, separators)]

def split_document(document: Document, max_chunk_size: int = settings.CHUNK_SIZE,
                   overlap_size: int = settings.CHUNK_OVERLAP,
                   separators: Sequence[str] = DEFAULT_SEPARATORS) -> List[Segment]:
    normalized = normalize_text(document.text)
    segments = []
    for position, (start, end) in enumerate(chunk_spans(normalized, max_chunk_size, overlap_size, separators)):
        chunk = normalized[start:end]
        segments.append(Segment(
            segment_id=Segment.make_id(document.source, start, chunk),
            source=document.source,
            text=chunk,
            start=start,
            position=position,
            metadata=dict(document.metadata),
        ))
    return segments
