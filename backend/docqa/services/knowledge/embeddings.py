import asyncio
import logging
import threading
from typing import Any, List, Optional, Sequence

import numpy as np

from docqa.core.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

def load_sentence_transformer(model_name: str) -> Any:
    """Loads the local sentence-transformers model used in production."""
    from sentence_transformers import SentenceTransformer

    logger.info("[Embedding Service] Loading embedding model: %s", model_name)
    try:
        model = SentenceTransformer(model_name)
    except Exception as e:
        raise EmbeddingUnavailable(f"Failed to load embedding model '{model_name}': {e}") from e
    logger.info("[Embedding Service] Embedding model loaded. Dimension: %s", model.get_sentence_embedding_dimension())
    return model

class LazySentenceTransformer:
    """Defers loading the model to the first call, so a missing model fails ingestion instead of startup."""

    def __init__(self, model_name: str):
        self.model_name = model_name
        self._model = None
        self._lock = threading.Lock()

    def _get(self) -> Any:
        with self._lock:
            if self._model is None:
                self._model = load_sentence_transformer(self.model_name)
            return self._model

    def get_sentence_embedding_dimension(self) -> Optional[int]:
        return self._get().get_sentence_embedding_dimension()

    def encode(self, texts, **kwargs):
        return self._get().encode(texts, **kwargs)

class EmbeddingGateway:
    """
    Async front for a model exposing the sentence-transformers `encode` interface.

    Every failure of the underlying model, including a timeout, surfaces as
    EmbeddingUnavailable.
    """

    def __init__(self, model: Any, timeout: Optional[float] = None):
        self._model = model
        self._timeout = timeout

    @property
    def dimension(self) -> Optional[int]:
        getter = getattr(self._model, "get_sentence_embedding_dimension", None)
        return getter() if callable(getter) else None

    def _encode(self, texts: List[str]) -> np.ndarray:
        return self._model.encode(texts, convert_to_numpy=True, show_progress_bar=False)

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        texts = list(texts)
        if not texts:
            return []
        logger.debug("[Embedding Service] Generating %d embeddings...", len(texts))
        loop = asyncio.get_running_loop()
        try:
            vectors = await asyncio.wait_for(loop.run_in_executor(None, self._encode, texts), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingUnavailable(f"Embedding model timed out after {self._timeout}s") from e
        except Exception as e:
            raise EmbeddingUnavailable(f"Embedding model failed: {e}") from e

        vectors = np.asarray(vectors, dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape[0] != len(texts):
            raise EmbeddingUnavailable(
                f"Embedding model returned shape {vectors.shape} for {len(texts)} texts"
            )
        return vectors.tolist()

    async def embed(self, text: str) -> List[float]:
        return (await self.embed_batch([text]))[0]
