import os
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

PROJECT_ROOT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

DEFAULT_SEED_TEXT = (
    "The sky is blue and the ocean is deep. The sun shines bright. "
    "The Earth is a wonderful planet. The capital of Brazil is Brasília."
)

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are an assistant that answers questions using only the context supplied with each message. "
    "If the context does not contain the answer, say that you cannot answer from the available documents. "
    "Never invent facts, names or figures that are not present in the context."
)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.path.join(PROJECT_ROOT_DIR, '.env'),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

    PROJECT_NAME: str = "Grounded Document Q&A"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # --- Corpus & Index Storage (relative to project root) ---
    DATA_DIR: str = os.path.join(PROJECT_ROOT_DIR, 'data')
    CORPUS_DIR: str = os.path.join(DATA_DIR, 'documents')
    INDEX_DIR: str = os.path.join(DATA_DIR, 'index_store')
    PERSIST_INDEX: bool = True
    SEED_DOCUMENT_NAME: str = "example.txt"
    SEED_DOCUMENT_TEXT: str = DEFAULT_SEED_TEXT

    # --- Chunking Settings ---
    CHUNK_SIZE: int = 500
    CHUNK_OVERLAP: int = 50

    # --- Retrieval Settings ---
    RETRIEVAL_MAX_RESULTS: int = 3
    RETRIEVAL_MIN_SCORE: float = 0.75

    # --- Conversation Settings ---
    CHAT_MEMORY_MAX_MESSAGES: int = 10
    CHAT_MAX_SESSIONS: int = 1000
    REMEMBER_FALLBACK_EXCHANGES: bool = False
    FALLBACK_MESSAGE: str = "I can't answer this question with the information available in the documents."
    SYSTEM_INSTRUCTION: str = DEFAULT_SYSTEM_INSTRUCTION

    # --- Embedding Settings ---
    EMBEDDING_MODEL_NAME: str = "all-MiniLM-L6-v2"
    EMBEDDING_TIMEOUT: float = 30.0

    # --- LLM Settings ---
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL_NAME: str = "gemini-1.5-flash"
    GENERATION_TEMPERATURE: float = 0.2
    GENERATION_TIMEOUT: float = 60.0

    @model_validator(mode='after')
    def _check_limits(self) -> 'Settings':
        if self.CHUNK_SIZE <= 0:
            raise ValueError("CHUNK_SIZE must be positive")
        if not 0 <= self.CHUNK_OVERLAP < self.CHUNK_SIZE:
            raise ValueError("CHUNK_OVERLAP must be >= 0 and smaller than CHUNK_SIZE")
        if self.RETRIEVAL_MAX_RESULTS < 1:
            raise ValueError("RETRIEVAL_MAX_RESULTS must be at least 1")
        if self.CHAT_MEMORY_MAX_MESSAGES < 1:
            raise ValueError("CHAT_MEMORY_MAX_MESSAGES must be at least 1")
        if self.CHAT_MAX_SESSIONS < 1:
            raise ValueError("CHAT_MAX_SESSIONS must be at least 1")
        if self.EMBEDDING_TIMEOUT <= 0 or self.GENERATION_TIMEOUT <= 0:
            raise ValueError("Model timeouts must be positive")
        return self

settings = Settings()
