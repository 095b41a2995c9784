from pydantic import BaseModel, Field
from typing import List, Optional

class AskRequest(BaseModel):
    question: str = Field(min_length=1)
    session_id: str = Field(min_length=1)

class AskResponse(BaseModel):
    answer: str
    type: str # 'text' (grounded) or 'not_found' (fallback)
    sources: List[str] = []

class IngestResponse(BaseModel):
    status: str
    documents_loaded: int
    segments_total: int
    segments_added: int
    failed_documents: List[str] = []

class StatusResponse(BaseModel):
    status: str # 'processing', 'ready' or 'error'
    message: Optional[str] = None
    indexed_segments: int = 0
