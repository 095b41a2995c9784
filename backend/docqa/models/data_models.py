from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, Literal
import hashlib

class Document(BaseModel):
    """A loaded source file: plain text plus where it came from."""
    model_config = ConfigDict(frozen=True)

    source: str  # Path relative to the corpus root, posix form
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

class Segment(BaseModel):
    """A contiguous slice of a document's normalized text; the unit of embedding and retrieval."""
    model_config = ConfigDict(frozen=True)

    segment_id: str
    source: str
    text: str
    start: int  # Character offset into the normalized document text
    position: int  # Ordinal within the document
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @staticmethod
    def make_id(source: str, start: int, text: str) -> str:
        digest = hashlib.sha1(f"{source}\x00{start}\x00{text}".encode("utf-8"))
        return digest.hexdigest()

class RetrievedContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    segment: Segment
    score: float  # Cosine similarity, higher is closer

class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    text: str
