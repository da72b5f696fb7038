"""Callback handlers for LangChain tracing/logging."""

from __future__ import annotations

import logging
import time
from typing import Any

from langchain_core.callbacks import BaseCallbackHandler

logger = logging.getLogger("rag.trace")


class LoggingCallbackHandler(BaseCallbackHandler):
    """Log one line per retrieval with the query, hit count and elapsed time."""

    def __init__(self):
        self._retriever_start: float | None = None
        self._last_query: str | None = None
        self.last_doc_count: int | None = None

    def on_retriever_start(self, *args, **kwargs):
        query = kwargs.get("query")
        if query is None and len(args) > 1:
            query = args[1]
        self._retriever_start = time.perf_counter()
        self._last_query = str(query or "<unknown>")

    def on_retriever_end(self, *args, **kwargs):
        documents = kwargs.get("documents")
        if documents is None and args:
            documents = args[0]
        elapsed = None
        if self._retriever_start is not None:
            elapsed = time.perf_counter() - self._retriever_start
        self.last_doc_count = len(documents or [])
        sources = [(getattr(d, "metadata", {}) or {}).get("source", "<unknown>") for d in documents or []]
        logger.info(
            "Retrieved %d relevant documents for %r%s sources=%s",
            self.last_doc_count,
            self._last_query,
            f" in {elapsed:.3f}s" if elapsed is not None else "",
            sources,
        )

    def on_retriever_error(self, error: BaseException, **kwargs: Any):
        logger.error("Retriever failed for %r: %s", self._last_query, error)
