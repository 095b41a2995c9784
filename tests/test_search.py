"""Tests for thresholded retrieval."""

import pytest

from docqa.core.errors import EmbeddingUnavailable, IndexNotReady, RetrievalFailed
from docqa.services.knowledge.embeddings import EmbeddingGateway
from docqa.services.knowledge.indexer import VectorIndex
from docqa.services.knowledge.search import Retriever

from conftest import FailingEncoder, KeywordTopicEncoder, SKY_SENTENCE, make_segment


@pytest.fixture
def mixed_index(encoder: KeywordTopicEncoder) -> VectorIndex:
    texts = [
        SKY_SENTENCE,
        "Blue sky over a deep blue sea.",
        "The ocean is deep and the sky is clear blue colour.",
        "The sun shines bright.",
        "Paris is the capital of France.",
        "Python is a programming language.",
    ]
    segments = [make_segment(text, source=f"doc{i}.txt") for i, text in enumerate(texts)]
    idx = VectorIndex()
    idx.add(encoder.encode(texts), segments)
    idx.mark_ready()
    return idx


class TestRetriever:
    @pytest.mark.asyncio
    async def test_unready_index_is_signalled(self, gateway: EmbeddingGateway) -> None:
        retriever = Retriever(VectorIndex(), gateway)
        with pytest.raises(IndexNotReady):
            await retriever.retrieve("What color is the sky?")

    @pytest.mark.asyncio
    async def test_relevant_question_finds_the_sky_sentence(self, sky_index: VectorIndex, gateway: EmbeddingGateway) -> None:
        retriever = Retriever(sky_index, gateway, max_results=3, min_score=0.75)

        results = await retriever.retrieve("What color is the sky?")

        assert len(results) >= 1
        assert SKY_SENTENCE in results[0].segment.text

    @pytest.mark.asyncio
    async def test_unrelated_question_returns_nothing(self, sky_index: VectorIndex, gateway: EmbeddingGateway) -> None:
        retriever = Retriever(sky_index, gateway, max_results=3, min_score=0.75)
        assert await retriever.retrieve("What is the capital of France?") == []

    @pytest.mark.asyncio
    async def test_threshold_and_cap_are_respected(self, mixed_index: VectorIndex, gateway: EmbeddingGateway) -> None:
        retriever = Retriever(mixed_index, gateway, max_results=2, min_score=0.75)

        results = await retriever.retrieve("Is the sky blue?")

        assert 1 <= len(results) <= 2
        assert all(r.score >= 0.75 for r in results)
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    @pytest.mark.asyncio
    async def test_lower_threshold_admits_more_results(self, mixed_index: VectorIndex, gateway: EmbeddingGateway) -> None:
        strict = Retriever(mixed_index, gateway, max_results=6, min_score=0.99)
        loose = Retriever(mixed_index, gateway, max_results=6, min_score=-1.0)

        assert len(await strict.retrieve("Is the sky blue?")) < len(await loose.retrieve("Is the sky blue?"))
        assert len(await loose.retrieve("Is the sky blue?")) == 6

    @pytest.mark.asyncio
    async def test_retrieval_is_idempotent(self, mixed_index: VectorIndex, gateway: EmbeddingGateway) -> None:
        retriever = Retriever(mixed_index, gateway, max_results=3, min_score=0.5)

        first = await retriever.retrieve("deep ocean and blue sky")
        second = await retriever.retrieve("deep ocean and blue sky")

        assert first == second

    @pytest.mark.asyncio
    async def test_embedding_failure_is_a_retrieval_failure(self, sky_index: VectorIndex) -> None:
        retriever = Retriever(sky_index, EmbeddingGateway(FailingEncoder()))

        with pytest.raises(RetrievalFailed) as exc_info:
            await retriever.retrieve("What color is the sky?")

        assert isinstance(exc_info.value.__cause__, EmbeddingUnavailable)

    def test_max_results_must_be_positive(self, sky_index: VectorIndex, gateway: EmbeddingGateway) -> None:
        with pytest.raises(ValueError):
            Retriever(sky_index, gateway, max_results=0)
