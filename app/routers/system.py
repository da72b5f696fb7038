# app/routers/system.py
# Purpose: /api/initialize -- load the configured pages into the vector index;
#          /api/add-urls -- add more pages to an initialized index.

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_service
from app.errors import KarlChatError, MalformedInput
from app.schemas import AddUrlsRequest, AddUrlsResponse, ErrorResponse, InitializeResponse, UrlError
from app.services.chat import RagService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.post("/initialize", response_model=InitializeResponse)
def initialize(service: RagService = Depends(get_service)):
    try:
        result = service.initialize()
    except Exception as exc:
        # RagService.initialize already logged the traceback
        body = ErrorResponse(
            success=False,
            error=exc.message if isinstance(exc, KarlChatError) else str(exc),
            details="Check server logs for more information",
        )
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True, exclude_none=True))
    return InitializeResponse(success=result.success, message=result.message)


@router.post("/add-urls", response_model=AddUrlsResponse)
def add_urls(req: AddUrlsRequest, service: RagService = Depends(get_service)):
    if req.urls is None:
        raise MalformedInput("URLs array is required")
    try:
        result = service.add_urls(req.urls)
    except KarlChatError:
        raise
    except Exception as exc:
        logger.exception("Error adding URLs")
        raise KarlChatError(f"Internal server error: {exc}") from exc

    return AddUrlsResponse(
        success=True,
        documents_added=result.pages_loaded,
        chunks_added=len(result.chunks),
        errors=[UrlError(url=url, error=err) for url, err in result.per_url_errors.items()],
    )
