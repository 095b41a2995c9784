# backend/docqa/api/endpoints/query.py

from fastapi import APIRouter, HTTPException, Depends, status
import logging

from docqa.api.dependencies import get_services
from docqa.core.errors import GenerationFailed, IndexNotReady, RetrievalFailed
from docqa.models.api_models import AskRequest, AskResponse
from docqa.services.container import RAGServices

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=AskResponse)
async def handle_ask_question(request: AskRequest, services: RAGServices = Depends(get_services)):
    question = request.question.strip()
    session_id = request.session_id
    if not question: raise HTTPException(status.HTTP_400_BAD_REQUEST, "Missing question.")
    logger.info("Received question: %r for session: %s", question, session_id)

    session = services.conversations.get(session_id)
    try:
        answer = await services.composer.answer(question, session)
    except IndexNotReady:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "The knowledge base is not ready yet. Please try again shortly.")
    except RetrievalFailed:
        logger.exception("Retrieval failed for session %s", session_id)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Document search is temporarily unavailable.")
    except GenerationFailed:
        logger.exception("Generation failed for session %s", session_id)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "The answer could not be generated. Please try again.")

    return AskResponse(answer=answer.text, type="text" if answer.grounded else "not_found", sources=answer.sources)

@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_conversation(session_id: str, services: RAGServices = Depends(get_services)):
    """Forgets the conversation window of one session."""
    services.conversations.drop(session_id)
