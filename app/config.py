"""
app/config.py

Hierarchical configuration for the Karl Chat backend.
- `ConfigResolver` merges built-in defaults, ancestor `config.json` files, one local
  config file and the environment into a flat settings map.
- `Settings` is the typed view of that map (pydantic), validated on every load so bad
  values fail at startup or on reload, not in the middle of a request.

Precedence, lowest to highest:
    defaults -> parent config.json files -> local config file -> .env -> process env
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, field_validator

from app.errors import MissingRequiredConfig

logger = logging.getLogger(__name__)

DEFAULT_MODULE_NAME = "karl-chat"
MAX_PARENT_LEVELS = 5
MASK = "***"

# Relative to the resolver's base directory; first parsable file wins.
LOCAL_CONFIG_CANDIDATES = (
    "../configs/static_settings.JSON",
    "../configs/config.json",
    "../config.json",
)

# config key -> environment variable
ENV_MAPPING = {
    "OLLAMA_HOST": "OLLAMA_HOST",
    "OLLAMA_PORT": "OLLAMA_PORT",
    "DEFAULT_MODEL": "DEFAULT_MODEL",
    "EMBEDDING_MODEL": "EMBEDDING_MODEL",
    "NEO4J_URI": "NEO4J_URI",
    "NEO4J_USERNAME": "NEO4J_USERNAME",
    "NEO4J_PASSWORD": "NEO4J_PASSWORD",
    "SERVER_PORT": "PORT",
    "CORS_ORIGIN": "CORS_ORIGIN",
    "LOG_LEVEL": "LOG_LEVEL",
    "CHUNK_SIZE": "CHUNK_SIZE",
    "CHUNK_OVERLAP": "CHUNK_OVERLAP",
    "RETRIEVER_K": "RETRIEVER_K",
    "REQUEST_TIMEOUT": "REQUEST_TIMEOUT",
    "AUTO_INITIALIZE": "AUTO_INITIALIZE",
}

REQUIRED_KEYS = ("OLLAMA_HOST", "OLLAMA_PORT", "DEFAULT_MODEL")
SENSITIVE_MARKERS = ("PASSWORD", "SECRET", "API_KEY")

DEFAULT_DOCUMENT_URLS = [
    "https://ollama.com",
    "https://ollama.com/blog/windows-preview",
    "https://ollama.com/blog/openai-compatibility",
]


def default_config() -> Dict[str, Any]:
    return {
        "OLLAMA_HOST": "localhost",
        "OLLAMA_PORT": "11434",
        "DEFAULT_MODEL": "llama3.2",
        "EMBEDDING_MODEL": "nomic-embed-text",
        "NEO4J_URI": "bolt://localhost:7687",
        "NEO4J_USERNAME": "neo4j",
        "NEO4J_PASSWORD": "password",
        "SERVER_PORT": 5000,
        "CORS_ORIGIN": "http://localhost:3000",
        "LOG_LEVEL": "info",
    }


def missing_required(config: Mapping[str, Any]) -> List[str]:
    return [key for key in REQUIRED_KEYS if config.get(key) in (None, "")]


class Settings(BaseModel):
    """
    Typed settings built from the merged map (keys are matched case-insensitively).
    Anything not modelled here is still reachable through `ConfigResolver.get`.
    """

    model_config = ConfigDict(extra="ignore")

    # ---------- Ollama ----------
    ollama_host: str = "localhost"
    ollama_port: int = 11434
    default_model: str = "llama3.2"
    embedding_model: str = "nomic-embed-text"
    temperature: float = 0.7
    request_timeout: float = 120.0

    # ---------- Neo4j vector index ----------
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_username: str = "neo4j"
    neo4j_password: str = "password"
    neo4j_index_name: str = "vector_index"
    neo4j_keyword_index: str = "keyword_index"
    neo4j_node_label: str = "Document"
    neo4j_text_property: str = "text"
    neo4j_embedding_property: str = "embedding"

    # ---------- Ingestion + retrieval ----------
    document_urls: List[str] = list(DEFAULT_DOCUMENT_URLS)
    chunk_size: int = 1000
    chunk_overlap: int = 200
    retriever_k: int = 4
    fetch_timeout: float = 20.0
    fetch_workers: int = 4

    # ---------- Prompts (None -> built-in templates) ----------
    before_rag_prompt: Optional[str] = None
    rag_prompt: Optional[str] = None

    # ---------- Server ----------
    server_port: int = 5000
    cors_origin: str = "http://localhost:3000"
    log_level: str = "info"
    auto_initialize: bool = True

    @field_validator("document_urls", mode="before")
    @classmethod
    def _split_urls(cls, value: Any) -> Any:
        # env vars arrive as strings: accept a JSON list or "a,b,c"
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return json.loads(text)
            return [part.strip() for part in text.split(",") if part.strip()]
        return value

    @property
    def ollama_base_url(self) -> str:
        host = self.ollama_host.rstrip("/")
        if host.startswith(("http://", "https://")):
            return f"{host}:{self.ollama_port}"
        return f"http://{host}:{self.ollama_port}"

    @classmethod
    def from_map(cls, config: Mapping[str, Any]) -> "Settings":
        # blanks fall back to field defaults; `ConfigResolver.validate` reports them
        return cls.model_validate(
            {str(k).lower(): v for k, v in config.items() if v not in (None, "")}
        )


class ConfigResolver:
    """
    Load configuration from every source, in order of precedence (highest last):
    1. Built-in defaults
    2. Parent directory config.json files (plus their `<module_name>` section)
    3. Local module config (first of LOCAL_CONFIG_CANDIDATES that parses)
    4. Environment: `.env` file, then process environment variables
    """

    def __init__(
        self,
        module_name: str = DEFAULT_MODULE_NAME,
        base_dir: str | Path | None = None,
        env: Optional[Mapping[str, str]] = None,
        env_file: str | Path | None = ".env",
    ):
        self.module_name = module_name
        self.base_dir = Path(base_dir or Path(__file__).resolve().parent).resolve()
        # relative .env paths live in the project root, next to configs/
        self.env_path: Optional[Path] = None
        if env_file:
            env_path = Path(env_file)
            self.env_path = env_path if env_path.is_absolute() else self.base_dir.parent / env_path
        self._env = env
        self.config: Dict[str, Any] = {}
        self.loaded_files: List[str] = []
        self._settings: Settings | None = None
        self.load()

    # ------------------------------------------------------------------ loading
    def load(self, require: bool = False) -> Dict[str, Any]:
        """
        Rebuild the merged map from every source. Nothing is swapped in unless the new map
        builds a valid `Settings` (and, with `require`, holds every required key).
        """
        loaded: List[str] = []
        merged = default_config()
        self._load_parent_configs(merged, loaded)
        self._load_local_config(merged, loaded)
        self._load_environment(merged)

        settings = Settings.from_map(merged)
        if require:
            missing = missing_required(merged)
            if missing:
                raise MissingRequiredConfig(missing)

        self.config = merged
        self.loaded_files = loaded
        self._settings = settings
        logger.info("Configuration loaded (files: %s)", ", ".join(loaded) or "none")
        logger.debug("Effective configuration: %s", self.get_safe_config())
        return self.get_all()

    def _merge_file(self, merged: Dict[str, Any], data: Dict[str, Any]) -> None:
        # top level first, then this module's section; nested sections never enter the flat map
        merged.update({k: v for k, v in data.items() if not isinstance(v, dict)})
        section = data.get(self.module_name)
        if isinstance(section, dict):
            merged.update({k: v for k, v in section.items() if not isinstance(v, dict)})

    def _read_json(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Error loading config %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not an object", path)
            return None
        return data

    def _load_parent_configs(self, merged: Dict[str, Any], loaded: List[str]) -> None:
        current = self.base_dir
        for _ in range(MAX_PARENT_LEVELS):
            parent = current.parent
            if parent == current:
                break  # filesystem root

            path = parent / "config.json"
            if path.is_file():
                data = self._read_json(path)
                if data is not None:
                    self._merge_file(merged, data)
                    loaded.append(str(path))
                    logger.info("Loaded parent config from %s", path)
            current = parent

    def _load_local_config(self, merged: Dict[str, Any], loaded: List[str]) -> None:
        for rel in LOCAL_CONFIG_CANDIDATES:
            path = (self.base_dir / rel).resolve()
            if not path.is_file():
                continue
            data = self._read_json(path)
            if data is None:
                continue
            self._merge_file(merged, data)
            loaded.append(str(path))
            logger.info("Loaded local config from %s", path)
            break

    def _load_environment(self, merged: Dict[str, Any]) -> None:
        source: Dict[str, str] = {}
        env_path = self.env_path
        if env_path is not None:
            if env_path.is_file():
                source.update({k: v for k, v in dotenv_values(env_path).items() if v is not None})
        source.update(os.environ if self._env is None else self._env)

        count = 0
        for key, env_key in ENV_MAPPING.items():
            value = source.get(env_key)
            if value:
                merged[key] = value
                count += 1
        if count:
            logger.info("Loaded %d values from environment variables", count)

    # ------------------------------------------------------------------ access
    def get(self, key: str, default: Any = None) -> Any:
        value = self.config.get(key)
        return default if value is None else value

    def get_all(self) -> Dict[str, Any]:
        return dict(self.config)

    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = Settings.from_map(self.config)
        return self._settings

    def get_safe_config(self) -> Dict[str, Any]:
        """Merged map with sensitive values masked. For display only."""
        safe: Dict[str, Any] = {}
        for key, value in self.config.items():
            if any(marker in key.upper() for marker in SENSITIVE_MARKERS):
                safe[key] = MASK
            else:
                safe[key] = value
        return safe

    def get_config_sources(self) -> Dict[str, Any]:
        return {
            "defaults": "Built-in defaults",
            "parent": "Parent directory config.json files",
            "local": "Local module configs/static_settings.JSON",
            "environment": "Environment variables",
            "files": list(self.loaded_files),
        }

    def validate(self) -> bool:
        missing = missing_required(self.config)
        if missing:
            raise MissingRequiredConfig(missing)
        return True

    def reload(self) -> Dict[str, Any]:
        """Recompute from scratch; a map missing required keys is rejected and the old one kept."""
        logger.info("Reloading configuration")
        return self.load(require=True)
