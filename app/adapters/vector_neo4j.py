"""
Vector store adapter over LangChain's Neo4jVector.
- add_documents(): embeds chunks and writes them as nodes with a vector index.
- search(): top-k similarity search returning LangChain Documents.
Neo4j/driver failures are reported as RetrievalUnavailable with the URI in the message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from langchain_community.vectorstores import Neo4jVector
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from app.errors import RetrievalUnavailable

logger = logging.getLogger(__name__)


class Neo4jStoreAdapter:
    def __init__(
        self,
        embedding: Embeddings,
        url: str,
        username: str,
        password: str,
        index_name: str = "vector_index",
        keyword_index_name: str = "keyword_index",
        node_label: str = "Document",
        text_node_property: str = "text",
        embedding_node_property: str = "embedding",
    ):
        self.embedding = embedding
        self.url = url
        self.username = username
        self.password = password
        self.index_name = index_name
        self.keyword_index_name = keyword_index_name
        self.node_label = node_label
        self.text_node_property = text_node_property
        self.embedding_node_property = embedding_node_property
        self._store: Optional[Neo4jVector] = None

    def _params(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "username": self.username,
            "password": self.password,
            "index_name": self.index_name,
            "keyword_index_name": self.keyword_index_name,
            "node_label": self.node_label,
            "text_node_property": self.text_node_property,
            "embedding_node_property": self.embedding_node_property,
        }

    def _unavailable(self, exc: Exception) -> RetrievalUnavailable:
        logger.error("Neo4j operation failed: %s", exc)
        return RetrievalUnavailable(
            f"Cannot connect to Neo4j at {self.url}. Make sure Neo4j is running with correct credentials."
        )

    @property
    def ready(self) -> bool:
        return self._store is not None

    def ping(self) -> None:
        try:
            with GraphDatabase.driver(self.url, auth=(self.username, self.password)) as driver:
                driver.verify_connectivity()
        except (DriverError, Neo4jError, ValueError) as exc:
            raise self._unavailable(exc) from exc

    def add_documents(self, documents: List[Document]) -> int:
        try:
            if self._store is None:
                self._store = Neo4jVector.from_documents(documents, self.embedding, **self._params())
            else:
                self._store.add_documents(documents)
        except (DriverError, Neo4jError, ValueError) as exc:
            raise self._unavailable(exc) from exc
        logger.info("Stored %d chunks in Neo4j index %s", len(documents), self.index_name)
        return len(documents)

    def search(self, query: str, k: int = 4) -> List[Document]:
        if self._store is None:
            raise RetrievalUnavailable("RAG system not initialized")
        try:
            return self._store.similarity_search(query, k=k)
        except (DriverError, Neo4jError) as exc:
            raise self._unavailable(exc) from exc

    def close(self) -> None:
        driver = getattr(self._store, "_driver", None)
        if driver is not None:
            driver.close()
        self._store = None
