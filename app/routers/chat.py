"""
/api/chat/* endpoints: direct chat, retrieval-augmented chat and a reasoning-format check.
Thin FastAPI layer over RagService; domain errors are rendered by the handler in app.main.
"""

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends

from app.dependencies import get_service
from app.errors import KarlChatError, MalformedInput
from app.schemas import (
    BeforeRagRequest,
    BeforeRagResponse,
    ThinkingCheckRequest,
    ThinkingCheckResponse,
    WithRagRequest,
    WithRagResponse,
)
from app.services.chat import ChatExchange, RagService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def _required(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise MalformedInput(f"{label} is required")
    return text


def _run(label: str, call: Callable[[], ChatExchange]) -> ChatExchange:
    try:
        return call()
    except KarlChatError:
        raise
    except Exception as exc:
        logger.exception("Error in %s chat", label)
        raise KarlChatError(f"Internal server error: {exc}") from exc


def _fields(exchange: ChatExchange) -> dict:
    return {
        "reasoning": exchange.reasoning,
        "answer": exchange.answer,
        "has_reasoning": exchange.has_reasoning,
        "raw_text": exchange.raw_text,
        "method": exchange.method,
    }


@router.post("/before-rag", response_model=BeforeRagResponse)
def chat_before_rag(req: BeforeRagRequest, service: RagService = Depends(get_service)):
    topic = _required(req.topic, "Topic")
    exchange = _run("before-rag", lambda: service.chat_direct(topic, req.enable_thinking))
    return BeforeRagResponse(topic=topic, **_fields(exchange))


@router.post("/with-rag", response_model=WithRagResponse)
def chat_with_rag(req: WithRagRequest, service: RagService = Depends(get_service)):
    question = _required(req.question, "Question")
    exchange = _run("with-rag", lambda: service.chat_with_retrieval(question, req.enable_thinking))
    return WithRagResponse(question=question, retrieved=exchange.retrieved, **_fields(exchange))


@router.post("/test-thinking", response_model=ThinkingCheckResponse)
def chat_test_thinking(req: ThinkingCheckRequest, service: RagService = Depends(get_service)):
    prompt = _required(req.prompt, "Prompt")
    exchange = _run("test-thinking", lambda: service.test_thinking(prompt))
    return ThinkingCheckResponse(original_prompt=prompt, **_fields(exchange))
