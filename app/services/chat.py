"""
Chat service: owns the RAG readiness state and answers both chat modes.

State machine:
    UNINITIALIZED -> INITIALIZING -> READY
    INITIALIZING  -> UNINITIALIZED   (failure; error recorded, retry allowed)

A second initialize() while INITIALIZING is a no-op; once READY it only acknowledges.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from app.config import Settings
from app.errors import KarlChatError, ModelUnavailable, RetrievalUnavailable
from app.services.prompting import (
    BEFORE_RAG_TEMPLATE,
    RAG_TEMPLATE,
    TEST_THINKING_TEMPLATE,
    THINKING_SUFFIX,
    with_thinking,
)
from app.services.thinking import extract_reasoning
from rag.callbacks import LoggingCallbackHandler
from rag.chain import build_direct_chain, build_rag_chain
from rag.ingest_lib.pipeline import IngestionPipeline, IngestResult
from rag.langchain_adapters import StoreRetriever

logger = logging.getLogger(__name__)


class ServiceStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass
class InitResult:
    success: bool
    message: str
    already: bool = False


@dataclass
class ThinkingPreferences:
    enable_by_default: bool = True
    prompt_suffix: str = THINKING_SUFFIX


@dataclass
class ChatExchange:
    reasoning: Optional[str]
    answer: str
    has_reasoning: bool
    raw_text: str
    method: str
    query: str
    retrieved: Optional[int] = None


class RagService:
    def __init__(
        self,
        settings: Settings,
        llm: Optional[Any] = None,
        store: Optional[Any] = None,
        pipeline: Optional[IngestionPipeline] = None,
    ):
        self.settings = settings
        # what the adapters were built from; reloads do not reconnect
        self.connection_settings = settings
        self.llm = llm
        self.store = store
        self.pipeline = pipeline
        self.thinking = ThinkingPreferences()
        self.retriever: Optional[StoreRetriever] = None
        self.last_ingest: Optional[IngestResult] = None
        self.chunks_indexed = 0
        self.initialization_error: Optional[str] = None
        self.model_connected = False
        self._state = ServiceStatus.UNINITIALIZED
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ state
    @property
    def state(self) -> ServiceStatus:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is ServiceStatus.READY and self.retriever is not None

    def status(self) -> Dict[str, Any]:
        return {
            "status": self._state.value,
            "rag_initialized": self.ready,
            "is_initializing": self._state is ServiceStatus.INITIALIZING,
            "initialization_error": self.initialization_error,
            "model_connected": self.model_connected,
            "chunks_indexed": self.chunks_indexed,
        }

    def apply_settings(self, settings: Settings) -> None:
        """Pick up reloaded prompts/retrieval knobs. Connections keep their startup values."""
        self.settings = settings
        if self.retriever is not None:
            self.retriever = StoreRetriever(store=self.store, top_k=settings.retriever_k)

    # ------------------------------------------------------------------ init
    def initialize(self) -> InitResult:
        with self._lock:
            if self._state is ServiceStatus.READY:
                return InitResult(True, "RAG system already initialized", already=True)
            if self._state is ServiceStatus.INITIALIZING:
                return InitResult(True, "Initialization already in progress", already=True)
            self._state = ServiceStatus.INITIALIZING
            self.initialization_error = None

        succeeded = False
        try:
            self._initialize()
            succeeded = True
        except Exception as exc:
            logger.exception("Error initializing RAG system")
            self.initialization_error = exc.message if isinstance(exc, KarlChatError) else str(exc)
            raise
        finally:
            with self._lock:
                self._state = ServiceStatus.READY if succeeded else ServiceStatus.UNINITIALIZED

        logger.info("RAG system initialized successfully")
        return InitResult(True, "RAG system initialized successfully")

    def _initialize(self) -> None:
        logger.info("Initializing RAG system")
        if self.llm is None:
            raise ModelUnavailable("Chat model not configured")

        logger.info("Testing Ollama connection")
        self.llm.ping()
        self.model_connected = True

        if self.pipeline is None or self.store is None:
            raise RetrievalUnavailable("Vector store not configured")

        if hasattr(self.store, "ping"):
            logger.info("Testing Neo4j connection")
            self.store.ping()

        result = self.pipeline.ingest(self.settings.document_urls)
        if result.per_url_errors:
            logger.warning("%d URLs failed to load: %s", len(result.per_url_errors), sorted(result.per_url_errors))

        self.last_ingest = result
        self.chunks_indexed = len(result.chunks)
        self.retriever = StoreRetriever(store=self.store, top_k=self.settings.retriever_k)

    def add_urls(self, urls: Sequence[str]) -> IngestResult:
        """Load more pages into the live index. Per-URL failures are reported, not raised."""
        if not self.ready or self.pipeline is None:
            raise RetrievalUnavailable("Vector store not initialized")

        logger.info("Adding %d URLs to the index", len(urls))
        result = self.pipeline.ingest(urls, require_content=False)
        self.chunks_indexed += len(result.chunks)
        return result

    # ------------------------------------------------------------------ chat
    def _thinking_enabled(self, enable_thinking: Optional[bool]) -> bool:
        return self.thinking.enable_by_default if enable_thinking is None else bool(enable_thinking)

    def _require_model(self) -> Any:
        if self.llm is None:
            raise ModelUnavailable("Chat model not initialized")
        return self.llm

    def _exchange(self, raw: str, method: str, query: str, retrieved: Optional[int] = None) -> ChatExchange:
        parsed = extract_reasoning(raw)
        logger.info(
            "%s response generated (thinking: %s, %d chars)",
            method,
            parsed.has_reasoning,
            len(raw or ""),
        )
        return ChatExchange(
            reasoning=parsed.reasoning,
            answer=parsed.answer,
            has_reasoning=parsed.has_reasoning,
            raw_text=raw,
            method=method,
            query=query,
            retrieved=retrieved,
        )

    def chat_direct(self, topic: str, enable_thinking: Optional[bool] = None) -> ChatExchange:
        llm = self._require_model()
        thinking = self._thinking_enabled(enable_thinking)
        logger.info("Before RAG query: %s (thinking: %s)", topic, thinking)

        template = with_thinking(
            self.settings.before_rag_prompt or BEFORE_RAG_TEMPLATE,
            thinking,
            self.thinking.prompt_suffix,
        )
        raw = build_direct_chain(llm, template).invoke({"topic": topic})
        return self._exchange(raw, "before-rag", topic)

    def chat_with_retrieval(self, question: str, enable_thinking: Optional[bool] = None) -> ChatExchange:
        if not self.ready:
            raise RetrievalUnavailable("RAG system not initialized")
        llm = self._require_model()
        thinking = self._thinking_enabled(enable_thinking)
        logger.info("RAG query: %s (thinking: %s)", question, thinking)

        template = with_thinking(
            self.settings.rag_prompt or RAG_TEMPLATE,
            thinking,
            self.thinking.prompt_suffix,
        )
        tracer = LoggingCallbackHandler()
        raw = build_rag_chain(self.retriever, llm, template).invoke(
            question, config={"callbacks": [tracer]}
        )
        return self._exchange(raw, "with-rag", question, retrieved=tracer.last_doc_count)

    def test_thinking(self, prompt: str) -> ChatExchange:
        llm = self._require_model()
        logger.info("Testing thinking response for: %s", prompt)
        raw = build_direct_chain(llm, TEST_THINKING_TEMPLATE).invoke({"prompt": prompt})
        return self._exchange(raw, "test-thinking", prompt)

    def update_thinking(
        self,
        enable_by_default: Optional[bool] = None,
        prompt_suffix: Optional[str] = None,
    ) -> ThinkingPreferences:
        if enable_by_default is not None:
            self.thinking.enable_by_default = bool(enable_by_default)
        if prompt_suffix is not None and prompt_suffix.strip():
            self.thinking.prompt_suffix = prompt_suffix.strip()
        logger.info(
            "Thinking preferences updated: enable_by_default=%s suffix=%r",
            self.thinking.enable_by_default,
            self.thinking.prompt_suffix,
        )
        return self.thinking

    def close(self) -> None:
        if self.store is not None and hasattr(self.store, "close"):
            self.store.close()
