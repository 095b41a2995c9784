"""
Shared test fixtures: deterministic stand-ins for the embedding and chat models.

The keyword-topic encoder maps text onto a handful of topic axes, so sentences
about the same topic land close together and unrelated ones score near zero.
"""

import re
import time
from typing import List, Optional, Sequence

import numpy as np
import pytest

from docqa.core.config import Settings
from docqa.models.data_models import ConversationTurn, Segment
from docqa.services.knowledge.embeddings import EmbeddingGateway
from docqa.services.knowledge.indexer import VectorIndex

SKY_SENTENCE = "The sky is blue and the ocean is deep."


class KeywordTopicEncoder:
    """sentence-transformers compatible `encode` over fixed topic vocabularies."""

    TOPICS = (
        {"sky", "blue", "color", "colour", "ocean", "deep", "sea"},
        {"capital", "france", "paris", "brazil", "city", "country"},
        {"sun", "shines", "bright", "light"},
        {"python", "code", "language", "program"},
    )

    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    def get_sentence_embedding_dimension(self) -> int:
        return len(self.TOPICS) + 1

    def encode(self, texts: Sequence[str], **kwargs) -> np.ndarray:
        self.calls.append(list(texts))
        rows = []
        for text in texts:
            words = re.findall(r"\w+", text.lower())
            rows.append([sum(w in topic for w in words) for topic in self.TOPICS] + [0.1])
        return np.asarray(rows, dtype=np.float32)


class FailingEncoder:
    def __init__(self, exc: Optional[Exception] = None) -> None:
        self.exc = exc or ConnectionError("embedding backend unreachable")

    def encode(self, texts, **kwargs):
        raise self.exc


class SlowEncoder(KeywordTopicEncoder):
    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay

    def encode(self, texts, **kwargs):
        time.sleep(self.delay)
        return super().encode(texts, **kwargs)


class ScriptedChatModel:
    """Records every call and answers with a fixed reply, raises, or stalls."""

    def __init__(self, reply: str = "The sky is blue.", exc: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.reply = reply
        self.exc = exc
        self.delay = delay
        self.calls: List[dict] = []

    def generate(self, prompt: str, history: Sequence[ConversationTurn], system_instruction: str) -> str:
        self.calls.append({"prompt": prompt, "history": list(history), "system_instruction": system_instruction})
        if self.delay:
            time.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.reply


def make_segment(text: str, source: str = "doc.txt", start: int = 0, position: int = 0) -> Segment:
    return Segment(
        segment_id=Segment.make_id(source, start, text),
        source=source,
        text=text,
        start=start,
        position=position,
    )


@pytest.fixture
def encoder() -> KeywordTopicEncoder:
    return KeywordTopicEncoder()


@pytest.fixture
def gateway(encoder: KeywordTopicEncoder) -> EmbeddingGateway:
    return EmbeddingGateway(encoder, timeout=5.0)


@pytest.fixture
def index() -> VectorIndex:
    return VectorIndex()


@pytest.fixture
def sky_index(encoder: KeywordTopicEncoder) -> VectorIndex:
    """A ready index holding only the sky sentence."""
    idx = VectorIndex()
    segment = make_segment(SKY_SENTENCE, source="sky.txt")
    idx.add(encoder.encode([segment.text]), [segment])
    idx.mark_ready()
    return idx


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        CORPUS_DIR=str(tmp_path / "documents"),
        INDEX_DIR=str(tmp_path / "index_store"),
        PERSIST_INDEX=False,
        GEMINI_API_KEY=None,
    )
