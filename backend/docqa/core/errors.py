"""Error conditions raised by the ingestion and query pipeline."""


class DocQAError(Exception):
    """Base class for every pipeline error."""


class DocumentLoadError(DocQAError):
    """A single document could not be read. Ingestion continues without it."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class EmbeddingUnavailable(DocQAError):
    """The embedding model could not be reached or returned unusable output."""


class RetrievalFailed(DocQAError):
    """A query could not be searched, as opposed to finding nothing relevant."""


class GenerationFailed(DocQAError):
    """The generation model failed, timed out or refused to answer."""


class IndexCorruption(DocQAError):
    """Vectors and segments do not line up; nothing was written."""


class IndexNotReady(DocQAError):
    """No ingestion has completed yet, so the corpus cannot be queried."""
