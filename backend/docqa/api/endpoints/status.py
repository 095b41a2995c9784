# backend/docqa/api/endpoints/status.py
from typing import Optional

from fastapi import APIRouter, Depends, Request

from docqa.api.dependencies import get_optional_services
from docqa.core.state import ERROR
from docqa.models.api_models import StatusResponse
from docqa.services.container import RAGServices

router = APIRouter()

@router.get("/", response_model=StatusResponse)
async def get_ingestion_status(request: Request, services: Optional[RAGServices] = Depends(get_optional_services)):
    """
    Reports whether the knowledge base can be queried yet.
    """
    if services is None:
        return StatusResponse(status=ERROR, message=getattr(request.app.state, "startup_error", None),
                              indexed_segments=0)
    return StatusResponse(status=services.status.status, message=services.status.message,
                          indexed_segments=len(services.index))
