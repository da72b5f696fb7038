"""
Embedding adapter backed by Ollama's /api/embed endpoint.
Implements LangChain's Embeddings interface so it plugs straight into Neo4jVector,
and keeps the embed_texts/embed_query pair the rest of the app calls.
"""

import logging
from typing import List

import requests
from langchain_core.embeddings import Embeddings

from app.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class OllamaEmbeddingAdapter(Embeddings):
    def __init__(
        self,
        model_name: str = "nomic-embed-text",
        host: str = "http://localhost:11434",
        timeout: float = 120,
        batch_size: int = 32,
    ):
        self.model_name = model_name
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.batch_size = max(1, batch_size)

    def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        url = f"{self.host}/api/embed"
        try:
            r = requests.post(url, json={"model": self.model_name, "input": texts}, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Embedding request to %s failed: %s", url, exc)
            raise UpstreamUnavailable(f"Embedding model {self.model_name} unavailable at {self.host}: {exc}") from exc

        vectors = r.json().get("embeddings") or []
        if len(vectors) != len(texts):
            raise UpstreamUnavailable(
                f"Embedding model returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return vectors

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts into dense vectors."""
        out: List[List[float]] = []
        for start in range(0, len(texts), self.batch_size):
            out.extend(self._embed_batch(list(texts[start:start + self.batch_size])))
        return out

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query text into a dense vector."""
        return self._embed_batch([text])[0]

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return self.embed_texts(texts)
