import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from docqa.core.config import settings
from docqa.models.data_models import Segment
from docqa.services.knowledge.embeddings import EmbeddingGateway
from docqa.services.knowledge.indexer import VectorIndex
from docqa.services.parser.main_parser import FileSystemDocumentSource
from docqa.services.text_splitter import split_document

logger = logging.getLogger(__name__)

@dataclass
class IngestionReport:
    documents_loaded: int = 0
    segments_total: int = 0
    segments_added: int = 0
    failed_documents: List[str] = field(default_factory=list)

class IngestionPipeline:
    """
    Loads the corpus, splits it, embeds the new segments in one batch and adds them to the index.

    Segments already present in the index (same source, offset and text) are not
    embedded again, so re-running over an unchanged corpus adds nothing.
    """

    def __init__(self, index: VectorIndex, embeddings: EmbeddingGateway,
                 source: Optional[FileSystemDocumentSource] = None,
                 chunk_size: int = settings.CHUNK_SIZE, chunk_overlap: int = settings.CHUNK_OVERLAP,
                 seed_name: str = settings.SEED_DOCUMENT_NAME, seed_text: str = settings.SEED_DOCUMENT_TEXT):
        self.index = index
        self.embeddings = embeddings
        self.source = source or FileSystemDocumentSource()
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.seed_name = seed_name
        self.seed_text = seed_text
        self.last_report: Optional[IngestionReport] = None
        self._lock = asyncio.Lock()

    def bootstrap_corpus(self, source_path: str) -> bool:
        """Creates the corpus directory with one example document. Never touches an existing corpus."""
        if os.path.exists(source_path):
            return False
        os.makedirs(source_path)
        seed_path = os.path.join(source_path, self.seed_name)
        with open(seed_path, 'w', encoding='utf-8') as f:
            f.write(self.seed_text)
        logger.info("[Ingestion] Created corpus directory %s with example document '%s'.", source_path, self.seed_name)
        return True

    async def ingest(self, source_path: str) -> int:
        """
        Ingests every supported document under `source_path` and returns the number of segments added.

        Unreadable documents are skipped and listed in `last_report`. An embedding
        failure raises EmbeddingUnavailable before anything is written to the index.
        """
        async with self._lock:
            report = IngestionReport()
            self.last_report = report

            self.bootstrap_corpus(source_path)
            logger.info("[Ingestion] Loading documents from %s", source_path)
            loaded = self.source.load(source_path)
            report.documents_loaded = len(loaded.documents)
            report.failed_documents = [e.source for e in loaded.errors]

            segments: List[Segment] = []
            for document in loaded.documents:
                segments.extend(split_document(document, self.chunk_size, self.chunk_overlap))
            report.segments_total = len(segments)

            pending = [s for s in segments if not self.index.contains(s.segment_id)]
            logger.info("[Ingestion] %d segments from %d documents, %d not yet indexed.",
                        len(segments), len(loaded.documents), len(pending))

            if pending:
                vectors = await self.embeddings.embed_batch([s.text for s in pending])
                report.segments_added = self.index.add(vectors, pending)

            self.index.mark_ready()
            logger.info("[Ingestion] Done. Total segments added: %d (index size %d, %d documents failed).",
                        report.segments_added, len(self.index), len(report.failed_documents))
            return report.segments_added
