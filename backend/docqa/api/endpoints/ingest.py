from fastapi import APIRouter, HTTPException, Depends, status
import logging

from docqa.api.dependencies import get_services
from docqa.core.errors import DocQAError
from docqa.models.api_models import IngestResponse
from docqa.services.container import RAGServices, run_ingestion

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=IngestResponse)
async def handle_ingest(services: RAGServices = Depends(get_services)):
    """Re-scans the corpus directory and indexes documents that are new or changed."""
    logger.info("API: Ingestion requested for %s", services.settings.CORPUS_DIR)
    try:
        report = await run_ingestion(services)
    except (DocQAError, OSError):
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, services.status.message)
    return IngestResponse(
        status=services.status.status,
        documents_loaded=report.documents_loaded,
        segments_total=report.segments_total,
        segments_added=report.segments_added,
        failed_documents=report.failed_documents,
    )
