"""
app/factory.py

Build the chat service from resolved settings.
- Ollama for generation and embeddings, Neo4j for the vector index, requests+bs4 for pages.
- Nothing connects here: connections are tested in RagService.initialize().
"""

from __future__ import annotations

from app.adapters.embed_ollama import OllamaEmbeddingAdapter
from app.adapters.llm_ollama import OllamaAdapter
from app.adapters.vector_neo4j import Neo4jStoreAdapter
from app.config import Settings
from app.services.chat import RagService
from rag.ingest_lib.fetch import PageFetcher
from rag.ingest_lib.pipeline import IngestionPipeline


def build_store(settings: Settings) -> Neo4jStoreAdapter:
    # ---------------- Embeddings ----------------
    emb = OllamaEmbeddingAdapter(
        model_name=settings.embedding_model,
        host=settings.ollama_base_url,
        timeout=settings.request_timeout,
    )

    # ---------------- Vector Store ----------------
    return Neo4jStoreAdapter(
        embedding=emb,
        url=settings.neo4j_uri,
        username=settings.neo4j_username,
        password=settings.neo4j_password,
        index_name=settings.neo4j_index_name,
        keyword_index_name=settings.neo4j_keyword_index,
        node_label=settings.neo4j_node_label,
        text_node_property=settings.neo4j_text_property,
        embedding_node_property=settings.neo4j_embedding_property,
    )


def build_pipeline(settings: Settings, store=None) -> IngestionPipeline:
    return IngestionPipeline(
        fetch=PageFetcher(timeout=settings.fetch_timeout),
        store=store,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        max_workers=settings.fetch_workers,
    )


def build_service(settings: Settings) -> RagService:
    # ---------------- LLM ----------------
    llm = OllamaAdapter(
        model=settings.default_model,
        host=settings.ollama_base_url,
        timeout=settings.request_timeout,
        temperature=settings.temperature,
    )

    store = build_store(settings)
    pipeline = build_pipeline(settings, store=store)
    return RagService(settings, llm=llm, store=store, pipeline=pipeline)
