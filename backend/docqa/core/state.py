# backend/docqa/core/state.py
from dataclasses import dataclass
from typing import Optional

# Ingestion lifecycle, as reported by the status endpoint:
# processing -> ready, or processing -> error when ingestion fails.
# After an error the index may still serve an earlier corpus; the message says so.
PROCESSING, READY, ERROR = "processing", "ready", "error"

@dataclass
class IngestionStatus:
    status: str = PROCESSING
    message: Optional[str] = "Preparing the knowledge base..."

    def set(self, status: str, message: Optional[str] = None) -> None:
        self.status = status
        self.message = message
