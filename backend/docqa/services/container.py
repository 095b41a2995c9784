import logging
from dataclasses import dataclass, field

from docqa.core.config import Settings
from docqa.core.errors import DocQAError, EmbeddingUnavailable, IndexCorruption
from docqa.core.state import IngestionStatus, PROCESSING, READY, ERROR
from docqa.services.knowledge.assistant import AnswerComposer
from docqa.services.knowledge.embeddings import EmbeddingGateway, LazySentenceTransformer
from docqa.services.knowledge.indexer import VectorIndex
from docqa.services.knowledge.ingestion import IngestionPipeline, IngestionReport
from docqa.services.knowledge.llm_interface import ChatModel, GeminiChatModel
from docqa.services.knowledge.search import Retriever
from docqa.services.memory import ConversationStore

logger = logging.getLogger(__name__)

@dataclass
class RAGServices:
    """Everything one running application needs, wired from explicit collaborators."""
    settings: Settings
    index: VectorIndex
    embeddings: EmbeddingGateway
    pipeline: IngestionPipeline
    retriever: Retriever
    composer: AnswerComposer
    conversations: ConversationStore
    status: IngestionStatus = field(default_factory=IngestionStatus)

def wire_services(settings: Settings, embedding_model, chat_model: ChatModel, index: VectorIndex) -> RAGServices:
    """Builds the pipeline around the given models and index."""
    embeddings = EmbeddingGateway(embedding_model, timeout=settings.EMBEDDING_TIMEOUT)
    retriever = Retriever(index, embeddings,
                          max_results=settings.RETRIEVAL_MAX_RESULTS,
                          min_score=settings.RETRIEVAL_MIN_SCORE)
    return RAGServices(
        settings=settings,
        index=index,
        embeddings=embeddings,
        pipeline=IngestionPipeline(index, embeddings,
                                   chunk_size=settings.CHUNK_SIZE,
                                   chunk_overlap=settings.CHUNK_OVERLAP,
                                   seed_name=settings.SEED_DOCUMENT_NAME,
                                   seed_text=settings.SEED_DOCUMENT_TEXT),
        retriever=retriever,
        composer=AnswerComposer(retriever, chat_model,
                                fallback_message=settings.FALLBACK_MESSAGE,
                                system_instruction=settings.SYSTEM_INSTRUCTION,
                                generation_timeout=settings.GENERATION_TIMEOUT,
                                remember_fallback=settings.REMEMBER_FALLBACK_EXCHANGES),
        conversations=ConversationStore(settings.CHAT_MEMORY_MAX_MESSAGES, max_sessions=settings.CHAT_MAX_SESSIONS),
    )

def _load_persisted_index(settings: Settings) -> VectorIndex:
    if not settings.PERSIST_INDEX:
        return VectorIndex()
    try:
        index = VectorIndex.load(settings.INDEX_DIR)
    except IndexCorruption as e:
        logger.warning("[Startup] Discarding unreadable saved index, rebuilding from the corpus: %s", e)
        return VectorIndex()
    return index if index is not None else VectorIndex()

def build_services(settings: Settings) -> RAGServices:
    """Production wiring: sentence-transformers embeddings, Gemini generation, persisted FAISS index."""
    chat_model = GeminiChatModel(settings.GEMINI_API_KEY, settings.GEMINI_MODEL_NAME,
                                 temperature=settings.GENERATION_TEMPERATURE)
    return wire_services(settings, LazySentenceTransformer(settings.EMBEDDING_MODEL_NAME),
                         chat_model, _load_persisted_index(settings))

def _failure_message(services: RAGServices, error: Exception) -> str:
    if isinstance(error, EmbeddingUnavailable):
        message = "Ingestion failed: the embedding model is unavailable."
    else:
        message = f"Ingestion failed: {error}"
    if services.index.ready:
        message += f" Still serving the previously indexed corpus ({len(services.index)} segments)."
    return message

async def run_ingestion(services: RAGServices) -> IngestionReport:
    """
    Ingests the configured corpus, persists the index and records the outcome in services.status.

    Pipeline and file system errors are recorded as an error and re-raised.
    """
    cfg = services.settings
    services.status.set(PROCESSING, f"Ingesting documents from {cfg.CORPUS_DIR}...")
    try:
        await services.pipeline.ingest(cfg.CORPUS_DIR)
        report = services.pipeline.last_report
        if cfg.PERSIST_INDEX and report.segments_added:
            services.index.save(cfg.INDEX_DIR)
    except (DocQAError, OSError) as e:
        logger.error("[Ingestion] Ingestion aborted: %s", e)
        services.status.set(ERROR, _failure_message(services, e))
        raise

    message = f"Completed. Indexed segments: {len(services.index)}."
    if report.failed_documents:
        message += f" Skipped unreadable documents: {', '.join(report.failed_documents)}"
    services.status.set(READY, message)
    return report
