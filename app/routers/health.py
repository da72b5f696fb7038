# Purpose:
# Defines the /api/health endpoint for the Karl Chat API.
# - Reports readiness of the RAG system and the model connection.
# - Echoes the non-sensitive connection settings for the frontend status panel.
# app/routers/health.py
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.config import ConfigResolver
from app.dependencies import get_resolver, get_service
from app.schemas import HealthConfig, HealthResponse
from app.services.chat import RagService

router = APIRouter(tags=["health"])

_URI_CREDENTIALS = re.compile(r"//.*@")


def hide_credentials(uri: str) -> str:
    return _URI_CREDENTIALS.sub("//***@", uri or "")


@router.get("/health", response_model=HealthResponse)
def health(
    service: RagService = Depends(get_service),
    resolver: ConfigResolver = Depends(get_resolver),
):
    settings = service.connection_settings
    status = service.status()
    return HealthResponse(
        status="ok",
        rag_initialized=status["rag_initialized"],
        ollama_connected=status["model_connected"],
        is_initializing=status["is_initializing"],
        initialization_error=status["initialization_error"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        config=HealthConfig(
            ollama_host=settings.ollama_host,
            ollama_port=settings.ollama_port,
            model=settings.default_model,
            neo4j_uri=hide_credentials(settings.neo4j_uri),
            config_sources=resolver.get_config_sources(),
        ),
    )
