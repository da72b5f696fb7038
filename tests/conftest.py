from pathlib import Path
import sys
from typing import Dict, List

import pytest
from langchain_core.documents import Document

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import Settings
from app.errors import FetchError
from app.services.chat import RagService
from rag.ingest_lib.fetch import Page
from rag.ingest_lib.pipeline import IngestionPipeline


class StubLLM:
    def __init__(self, reply: str = "<think>Because.</think>The answer.", ping_error: Exception | None = None):
        self.reply = reply
        self.ping_error = ping_error
        self.prompts: List[str] = []
        self.pings = 0

    def ping(self):
        self.pings += 1
        if self.ping_error is not None:
            raise self.ping_error

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class StubStore:
    def __init__(self, ping_error: Exception | None = None):
        self.ping_error = ping_error
        self.pings = 0
        self.docs: List[Document] = []
        self.add_calls = 0
        self.queries: List[str] = []
        self.closed = False

    def ping(self):
        self.pings += 1
        if self.ping_error is not None:
            raise self.ping_error

    def add_documents(self, documents: List[Document]) -> int:
        self.add_calls += 1
        self.docs.extend(documents)
        return len(documents)

    def search(self, query: str, k: int = 4) -> List[Document]:
        self.queries.append(query)
        return self.docs[:k]

    def close(self):
        self.closed = True


class StubFetcher:
    """Serve canned pages; URLs mapped to an Exception raise it."""

    def __init__(self, pages: Dict[str, object]):
        self.pages = pages
        self.calls: List[str] = []

    def __call__(self, url: str) -> Page:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, "404 Not Found")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, Page):
            return page
        return Page(url=url, text=str(page), metadata={"source": url})


GOOD_URL = "https://docs.example.test/intro"
BAD_URL = "https://docs.example.test/missing"


@pytest.fixture()
def settings():
    return Settings(
        document_urls=[GOOD_URL, BAD_URL],
        chunk_size=100,
        chunk_overlap=20,
        retriever_k=2,
        fetch_workers=1,
    )


@pytest.fixture()
def stub_llm():
    return StubLLM()


@pytest.fixture()
def stub_store():
    return StubStore()


@pytest.fixture()
def stub_fetcher():
    text = " ".join(f"Ollama runs large language models locally, sentence {i}." for i in range(12))
    return StubFetcher({GOOD_URL: text})


@pytest.fixture()
def service(settings, stub_llm, stub_store, stub_fetcher):
    pipeline = IngestionPipeline(
        fetch=stub_fetcher,
        store=stub_store,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        max_workers=settings.fetch_workers,
    )
    return RagService(settings, llm=stub_llm, store=stub_store, pipeline=pipeline)
