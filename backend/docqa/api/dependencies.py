from typing import Optional

from fastapi import HTTPException, Request, status

from docqa.services.container import RAGServices

def get_optional_services(request: Request) -> Optional[RAGServices]:
    """None when the services could not be built at startup."""
    return getattr(request.app.state, "services", None)

def get_services(request: Request) -> RAGServices:
    services = get_optional_services(request)
    if services is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "The knowledge base failed to start.")
    return services
