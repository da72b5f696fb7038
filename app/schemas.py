# app/schemas.py
# Purpose: Pydantic models for the chat/config API so the JSON contract stays stable.
# Field names are snake_case in Python and camelCase on the wire.

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --------- Requests ---------
class BeforeRagRequest(ApiModel):
    topic: Optional[str] = None
    enable_thinking: Optional[bool] = None


class WithRagRequest(ApiModel):
    question: Optional[str] = None
    enable_thinking: Optional[bool] = None


class ThinkingCheckRequest(ApiModel):
    prompt: Optional[str] = None


class ThinkingConfigRequest(ApiModel):
    enable_by_default: Optional[bool] = None
    thinking_prompt_suffix: Optional[str] = None


class AddUrlsRequest(ApiModel):
    urls: Optional[List[str]] = None


# --------- Responses ---------
class ChatResponse(ApiModel):
    reasoning: Optional[str] = None
    answer: str
    has_reasoning: bool
    raw_text: str
    method: str


class BeforeRagResponse(ChatResponse):
    topic: str


class WithRagResponse(ChatResponse):
    question: str
    retrieved: Optional[int] = None


class ThinkingCheckResponse(ChatResponse):
    original_prompt: str


class ThinkingSettings(ApiModel):
    enable_by_default: bool
    thinking_prompt_suffix: str


class ThinkingConfigResponse(ApiModel):
    success: bool
    settings: ThinkingSettings


class HealthConfig(ApiModel):
    ollama_host: str
    ollama_port: int
    model: str
    neo4j_uri: str = Field(alias="neo4jUri")  # to_camel would give "neo4JUri"
    config_sources: Dict[str, Any]


class HealthResponse(ApiModel):
    status: str
    rag_initialized: bool
    ollama_connected: bool
    is_initializing: bool
    initialization_error: Optional[str] = None
    timestamp: str
    config: HealthConfig


class ConfigResponse(ApiModel):
    config: Dict[str, Any]
    sources: Dict[str, Any]


class ReloadResponse(ApiModel):
    success: bool
    message: str
    config: Dict[str, Any]


class InitializeResponse(ApiModel):
    success: bool
    message: str


class ErrorResponse(ApiModel):
    error: str
    needs_initialization: Optional[bool] = None
    success: Optional[bool] = None
    details: Optional[str] = None


class UrlError(ApiModel):
    url: str
    error: str


class AddUrlsResponse(ApiModel):
    success: bool
    documents_added: int
    chunks_added: int
    errors: List[UrlError]
