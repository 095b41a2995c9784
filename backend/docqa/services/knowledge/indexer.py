import faiss
import numpy as np
import os
import json
import logging
import threading
from typing import List, Optional, Sequence

from docqa.core.errors import IndexCorruption
from docqa.models.data_models import Segment, RetrievedContent

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "index.faiss"
MAPPING_FILE_NAME = "segments.json"

def _as_unit_rows(vectors) -> np.ndarray:
    """Float32, C-contiguous, L2-normalized copy so inner product equals cosine similarity."""
    matrix = np.array(vectors, dtype=np.float32, ndmin=2, copy=True)
    matrix = np.ascontiguousarray(matrix)
    faiss.normalize_L2(matrix)
    return matrix

class VectorIndex:
    """
    In-process vector store: a FAISS inner-product index over normalized vectors
    plus the segment stored under each FAISS id.

    One lock covers both the FAISS index and the mapping, so an `add` is either
    fully visible to a later `search` or not visible at all. Entries are never removed.
    """

    def __init__(self, dimension: Optional[int] = None):
        self._lock = threading.Lock()
        self._dimension = dimension
        self._index: Optional[faiss.Index] = faiss.IndexFlatIP(dimension) if dimension else None
        self._segments: List[Segment] = []  # FAISS id == list position
        self._ids: set = set()
        self._ready = False

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    @property
    def ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> None:
        self._ready = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._segments)

    def contains(self, segment_id: str) -> bool:
        with self._lock:
            return segment_id in self._ids

    def add(self, vectors: Sequence[Sequence[float]], segments: Sequence[Segment]) -> int:
        """Adds parallel vectors and segments. Returns how many new entries were written."""
        if len(vectors) != len(segments):
            raise IndexCorruption(f"Got {len(vectors)} vectors for {len(segments)} segments")
        if not segments:
            return 0

        try:
            matrix = np.array(vectors, dtype=np.float32)
        except ValueError as e:
            raise IndexCorruption(f"Vectors are not a rectangular matrix: {e}") from e
        if matrix.ndim != 2:
            raise IndexCorruption(f"Vectors must form a 2-D matrix, got shape {matrix.shape}")

        with self._lock:
            dimension = self._dimension or matrix.shape[1]
            if matrix.shape[1] != dimension:
                raise IndexCorruption(f"Vector dimension {matrix.shape[1]} does not match index dimension {dimension}")

            keep, seen = [], set()
            for row, segment in enumerate(segments):
                if segment.segment_id in self._ids or segment.segment_id in seen:
                    continue
                seen.add(segment.segment_id)
                keep.append(row)
            if not keep:
                logger.info("[Indexer Service] All %d segments already indexed, nothing added.", len(segments))
                return 0

            if self._index is None:
                self._dimension = dimension
                self._index = faiss.IndexFlatIP(dimension)

            self._index.add(_as_unit_rows(matrix[keep]))
            for row in keep:
                self._segments.append(segments[row])
            self._ids.update(seen)
            logger.info("[Indexer Service] Added %d vectors. New index total: %d", len(keep), self._index.ntotal)
            return len(keep)

    def search(self, query_vector: Sequence[float], k: int) -> List[RetrievedContent]:
        """Returns up to k entries ordered by descending cosine similarity."""
        with self._lock:
            if self._index is None or self._index.ntotal == 0 or k <= 0:
                return []
            query = _as_unit_rows(query_vector)
            if query.shape[1] != self._dimension:
                raise IndexCorruption(f"Query dimension {query.shape[1]} does not match index dimension {self._dimension}")
            scores, faiss_ids = self._index.search(query, min(k, self._index.ntotal))
            results = []
            for score, faiss_id in zip(scores[0], faiss_ids[0]):
                if faiss_id == -1: continue
                results.append(RetrievedContent(segment=self._segments[faiss_id], score=float(score)))
            return results

    # --- Persistence ---
    def save(self, directory: str) -> None:
        """Writes the FAISS index and the id -> segment mapping under `directory`."""
        os.makedirs(directory, exist_ok=True)
        with self._lock:
            if self._index is None:
                logger.info("[Indexer Service Save] Index is empty, nothing to save.")
                return
            faiss.write_index(self._index, os.path.join(directory, INDEX_FILE_NAME))
            payload = {"dimension": self._dimension, "segments": [s.model_dump() for s in self._segments]}
            with open(os.path.join(directory, MAPPING_FILE_NAME), 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            logger.info("[Indexer Service Save] Index and mapping saved (%d entries).", len(self._segments))

    @classmethod
    def load(cls, directory: str) -> Optional["VectorIndex"]:
        """Loads a saved index, or returns None when nothing has been saved yet."""
        index_file = os.path.join(directory, INDEX_FILE_NAME)
        mapping_file = os.path.join(directory, MAPPING_FILE_NAME)
        if not os.path.exists(index_file) or not os.path.exists(mapping_file):
            logger.info("[Indexer Service Load] No saved index found in %s", directory)
            return None

        try:
            raw_index = faiss.read_index(index_file)
            with open(mapping_file, 'r', encoding='utf-8') as f:
                payload = json.load(f)
            segments = [Segment.model_validate(item) for item in payload.get("segments", [])]
        except (RuntimeError, ValueError, AttributeError) as e:
            raise IndexCorruption(f"Saved index in {directory} is unreadable: {e}") from e
        if raw_index.ntotal != len(segments):
            raise IndexCorruption(f"Saved index holds {raw_index.ntotal} vectors but mapping holds {len(segments)} segments")

        loaded = cls(dimension=raw_index.d)
        loaded._index = raw_index
        loaded._segments = segments
        loaded._ids = {s.segment_id for s in segments}
        logger.info("[Indexer Service Load] Index loaded (Size: %d) from %s", raw_index.ntotal, directory)
        return loaded
