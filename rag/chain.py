# rag/chain.py
"""
LCEL graphs for the two chat modes.
- direct:   prompt(topic) -> model -> str
- with RAG: {context: retriever -> joined text, question} -> prompt -> model -> str
"""

from __future__ import annotations

from typing import Any, Sequence

from langchain_core.documents import Document
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_core.retrievers import BaseRetriever
from langchain_core.runnables import Runnable, RunnableLambda, RunnablePassthrough

from rag.langchain_adapters import llm_runnable

CONTEXT_SEPARATOR = "\n\n"


def format_docs(docs: Sequence[Document]) -> str:
    """Concatenate retrieved chunks into a single context string."""
    return CONTEXT_SEPARATOR.join(d.page_content for d in docs)


def build_direct_chain(llm: Any, template: str) -> Runnable:
    prompt = PromptTemplate.from_template(template)
    return prompt | llm_runnable(llm) | StrOutputParser()


def build_rag_chain(retriever: BaseRetriever, llm: Any, template: str) -> Runnable:
    """Invoke with the question string; callbacks passed at invoke time reach the retriever."""
    prompt = PromptTemplate.from_template(template)
    return (
        {
            "context": retriever | RunnableLambda(format_docs),
            "question": RunnablePassthrough(),
        }
        | prompt
        | llm_runnable(llm)
        | StrOutputParser()
    )
