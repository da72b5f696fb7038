"""
app/errors.py

Error taxonomy shared by the resolver, the ingestion pipeline, the chat service
and the HTTP layer.
- Each error carries the HTTP status the API answers with.
- `needs_initialization` tells the frontend to offer the "Initialize" button.
"""

from __future__ import annotations

from typing import Iterable


class KarlChatError(Exception):
    status_code: int = 500
    needs_initialization: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingRequiredConfig(KarlChatError):
    """Required configuration keys are absent after the merge."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


ConfigMissing = MissingRequiredConfig


class UpstreamUnavailable(KarlChatError):
    """An external capability (model, embeddings, vector store, web) is unreachable."""

    status_code = 503


class ModelUnavailable(UpstreamUnavailable):
    needs_initialization = True


class RetrievalUnavailable(UpstreamUnavailable):
    needs_initialization = True


class NoContentLoaded(KarlChatError):
    """Ingestion produced zero chunks. Retryable."""

    def __init__(self, message: str = "No documents were successfully loaded from URLs"):
        super().__init__(message)


class MalformedInput(KarlChatError):
    status_code = 400


class FetchError(Exception):
    """A single page could not be fetched or parsed. Recovered inside ingestion."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
