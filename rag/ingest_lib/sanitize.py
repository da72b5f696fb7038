"""
Metadata cleaning for Neo4j.
Neo4j node properties only take primitive values, so anything else coming from a
loader (dicts, lists, dates) is serialized to a string and None values are dropped.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = (str, int, float, bool)


def is_primitive(value: Any) -> bool:
    return isinstance(value, PRIMITIVE_TYPES)


def _serialize(key: str, value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)
    except (TypeError, ValueError) as exc:
        logger.warning("Could not serialize metadata field %r: %s", key, exc)
        return str(value)


def clean_metadata(
    metadata: Optional[Dict[str, Any]],
    content: str,
    index: int = 0,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in (metadata or {}).items():
        if value is None:
            continue
        cleaned[str(key)] = value if is_primitive(value) else _serialize(key, value)

    cleaned["source"] = cleaned.get("source") or "unknown"
    cleaned["chunk_id"] = cleaned.get("chunk_id") or f"chunk_{index}_{uuid.uuid4().hex[:12]}"
    cleaned["created_at"] = (now or datetime.now(timezone.utc)).isoformat()
    cleaned["content_length"] = len(content)
    return cleaned


def clean_documents(documents: Iterable[Document], now: Optional[datetime] = None) -> List[Document]:
    """Return copies of `documents` whose metadata is safe to store as node properties."""
    stamp = now or datetime.now(timezone.utc)
    return [
        Document(
            page_content=doc.page_content,
            metadata=clean_metadata(doc.metadata, doc.page_content, index=i, now=stamp),
        )
        for i, doc in enumerate(documents)
    ]
