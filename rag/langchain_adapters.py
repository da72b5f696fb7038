from __future__ import annotations

from typing import Any, List, Optional

from langchain_core.callbacks import CallbackManagerForRetrieverRun
from langchain_core.documents import Document
from langchain_core.retrievers import BaseRetriever
from langchain_core.runnables import Runnable, RunnableLambda
from pydantic import ConfigDict


class StoreRetriever(BaseRetriever):
    """
    LangChain retriever over any store exposing `search(query, k) -> List[Document]`
    (the Neo4j adapter in production, stubs in tests).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    store: Any
    top_k: int = 4

    def _get_relevant_documents(
        self, query: str, *, run_manager: Optional[CallbackManagerForRetrieverRun] = None
    ) -> List[Document]:
        question = query["question"] if isinstance(query, dict) else query
        return list(self.store.search(question, k=max(1, self.top_k)))


def llm_runnable(llm: Any) -> Runnable:
    """Wrap an adapter exposing `generate(prompt) -> str` as a Runnable over prompt values."""

    def _inner(prompt: Any) -> str:
        text = prompt.to_string() if hasattr(prompt, "to_string") else str(prompt)
        return llm.generate(text)

    return RunnableLambda(_inner, name="ollama")
