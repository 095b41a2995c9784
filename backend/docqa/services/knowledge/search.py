import logging
from typing import List

from docqa.core.config import settings
from docqa.core.errors import EmbeddingUnavailable, IndexCorruption, IndexNotReady, RetrievalFailed
from docqa.models.data_models import RetrievedContent
from docqa.services.knowledge.embeddings import EmbeddingGateway
from docqa.services.knowledge.indexer import VectorIndex

logger = logging.getLogger(__name__)

class Retriever:
    """
    Embeds a question, searches the index and keeps only confident matches.

    An empty result means nothing in the corpus is close enough to answer from;
    it is a normal outcome. Infrastructure failures raise RetrievalFailed instead.
    """

    def __init__(self, index: VectorIndex, embeddings: EmbeddingGateway,
                 max_results: int = settings.RETRIEVAL_MAX_RESULTS,
                 min_score: float = settings.RETRIEVAL_MIN_SCORE):
        if max_results < 1:
            raise ValueError("max_results must be at least 1")
        self.index = index
        self.embeddings = embeddings
        self.max_results = max_results
        self.min_score = min_score

    async def retrieve(self, query_text: str) -> List[RetrievedContent]:
        if not self.index.ready:
            raise IndexNotReady("The knowledge base has not finished ingesting documents.")

        logger.info("[Search Service] Retrieving context for %r (Top K: %d, Min score: %.2f)",
                    query_text, self.max_results, self.min_score)
        try:
            query_vector = await self.embeddings.embed(query_text)
        except EmbeddingUnavailable as e:
            logger.error("[Search Service] ERROR generating query embedding: %s", e)
            raise RetrievalFailed("Could not embed the query") from e

        try:
            candidates = self.index.search(query_vector, self.max_results)
        except IndexCorruption as e:
            logger.error("[Search Service] ERROR during index search: %s", e)
            raise RetrievalFailed("Could not search the index") from e
        results = [c for c in candidates if c.score >= self.min_score]
        logger.info("[Search Service] %d of %d candidates passed the score threshold.", len(results), len(candidates))
        return results
