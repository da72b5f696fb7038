# app/routers/config.py
# Purpose: configuration endpoints (redacted view, reload, thinking defaults).

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.config import ConfigResolver
from app.dependencies import get_resolver, get_service
from app.schemas import (
    ConfigResponse,
    ErrorResponse,
    ReloadResponse,
    ThinkingConfigRequest,
    ThinkingConfigResponse,
    ThinkingSettings,
)
from app.services.chat import RagService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["config"])


@router.get("/config", response_model=ConfigResponse)
def get_config(resolver: ConfigResolver = Depends(get_resolver)):
    return ConfigResponse(config=resolver.get_safe_config(), sources=resolver.get_config_sources())


@router.post("/config/reload", response_model=ReloadResponse)
def reload_config(
    resolver: ConfigResolver = Depends(get_resolver),
    service: RagService = Depends(get_service),
):
    try:
        resolver.reload()
        service.apply_settings(resolver.settings())
    except Exception as exc:
        logger.exception("Configuration reload failed")
        body = ErrorResponse(success=False, error=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True, exclude_none=True))

    return ReloadResponse(
        success=True,
        message="Configuration reloaded successfully",
        config=resolver.get_safe_config(),
    )


@router.post("/config/thinking", response_model=ThinkingConfigResponse)
def configure_thinking(req: ThinkingConfigRequest, service: RagService = Depends(get_service)):
    prefs = service.update_thinking(
        enable_by_default=req.enable_by_default,
        prompt_suffix=req.thinking_prompt_suffix,
    )
    return ThinkingConfigResponse(
        success=True,
        settings=ThinkingSettings(
            enable_by_default=prefs.enable_by_default,
            thinking_prompt_suffix=prefs.prompt_suffix,
        ),
    )
