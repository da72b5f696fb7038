"""
URL ingestion: fetch pages -> split into overlapping chunks -> clean metadata -> store.

Per-URL failures are soft: they are logged, recorded in `per_url_errors` and the batch
carries on. Only an empty result (zero chunks overall) fails the run.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from langchain_core.documents import Document

from app.errors import FetchError, NoContentLoaded
from rag.ingest_lib.fetch import Page
from rag.ingest_lib.sanitize import clean_documents
from rag.segment.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, chunk_document

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Page]


@dataclass
class IngestResult:
    chunks: List[Document] = field(default_factory=list)
    per_url_errors: Dict[str, str] = field(default_factory=dict)
    pages_loaded: int = 0


class IngestionPipeline:
    def __init__(
        self,
        fetch: Fetcher,
        store: Optional[Any] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        max_workers: int = 4,
    ):
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.fetch = fetch
        self.store = store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_workers = max(1, max_workers)

    def _load_one(self, url: str) -> Tuple[str, Optional[Page], Optional[str]]:
        try:
            return url, self.fetch(url), None
        except FetchError as exc:
            return url, None, exc.reason
        except Exception as exc:  # recorded per URL like FetchError
            return url, None, f"{type(exc).__name__}: {exc}"

    def load_pages(self, urls: Sequence[str]) -> Tuple[List[Page], Dict[str, str]]:
        """Fetch every URL in parallel; results keep the order of `urls`."""
        pages: List[Page] = []
        errors: Dict[str, str] = {}
        if not urls:
            return pages, errors

        workers = min(self.max_workers, len(urls))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(self._load_one, urls))

        for url, page, error in outcomes:
            if page is None:
                logger.error("Error loading %s: %s", url, error)
                errors[url] = error or "unknown error"
            else:
                logger.info("Loaded %s (%d chars)", url, len(page.text))
                pages.append(page)
        return pages, errors

    def split(self, pages: Sequence[Page]) -> List[Document]:
        chunks: List[Document] = []
        for page in pages:
            metadata = dict(page.metadata)
            metadata.setdefault("source", page.url)
            chunks.extend(
                chunk_document(
                    page.text,
                    metadata,
                    chunk_size=self.chunk_size,
                    overlap=self.chunk_overlap,
                )
            )
        return clean_documents(chunks)

    def ingest(self, urls: Sequence[str], store: bool = True, require_content: bool = True) -> IngestResult:
        """
        Fetch, chunk and store `urls`. Zero chunks raises NoContentLoaded unless
        `require_content` is False, in which case the empty result is returned as is.
        """
        logger.info("Loading documents from %d URLs", len(urls))
        pages, errors = self.load_pages(urls)
        chunks = self.split(pages)
        logger.info("Split %d pages into %d chunks", len(pages), len(chunks))

        if not chunks:
            if require_content:
                raise NoContentLoaded()
            return IngestResult(chunks=[], per_url_errors=errors, pages_loaded=len(pages))

        if store and self.store is not None:
            self.store.add_documents(chunks)

        return IngestResult(chunks=chunks, per_url_errors=errors, pages_loaded=len(pages))
