# app/adapters/llm_ollama.py
import logging
from typing import Dict, Optional, Tuple

import requests

from app.errors import ModelUnavailable

logger = logging.getLogger(__name__)


class OllamaAdapter:
    """Text generation against a local Ollama daemon (chat API, generate API fallback)."""

    def __init__(
        self,
        model: str,
        host: str,
        timeout: float = 120,
        temperature: float = 0.7,
    ):
        self.model = model
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature

    def _raise(self, r):
        # Try to extract Ollama's JSON error; otherwise show plain text
        try:
            msg = r.json().get("error")
        except ValueError:
            msg = r.text
        raise ModelUnavailable(f"Ollama {r.status_code}: {msg}")

    def _post(self, path: str, body: Dict) -> requests.Response:
        url = f"{self.host}{path}"
        try:
            return requests.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Ollama request to %s failed: %s", url, exc)
            raise ModelUnavailable(
                f"Cannot connect to Ollama at {self.host}. Make sure Ollama is running."
            ) from exc

    def ping(self) -> None:
        """Raise ModelUnavailable unless the daemon answers and knows the model."""
        url = f"{self.host}/api/tags"
        try:
            r = requests.get(url, timeout=min(self.timeout, 10))
        except requests.RequestException as exc:
            logger.error("Ollama ping failed: %s", exc)
            raise ModelUnavailable(
                f"Cannot connect to Ollama at {self.host}. Make sure Ollama is running."
            ) from exc
        if r.status_code >= 400:
            self._raise(r)
        names = {m.get("name", "") for m in r.json().get("models", [])}
        if names and not any(n == self.model or n.split(":")[0] == self.model for n in names):
            logger.warning("Model %s not found on %s (available: %s)", self.model, self.host, sorted(names))

    def chat(
        self,
        system: str,
        user: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Tuple[str, Dict]:
        options = {"temperature": self.temperature if temperature is None else temperature}
        if max_tokens:
            options["num_predict"] = max_tokens

        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        # Prefer chat; older daemons lack it.
        body = {"model": self.model, "messages": messages, "options": options, "stream": False}
        r = self._post("/api/chat", body)
        if r.status_code == 404 and "model" not in r.text.lower():
            # Fall back to /api/generate
            prompt = f"{system}\n\n{user}" if system else user
            gbody = {"model": self.model, "prompt": prompt, "options": options, "stream": False}
            rg = self._post("/api/generate", gbody)
            if rg.status_code >= 400:
                self._raise(rg)
            data = rg.json()
            return data.get("response", ""), {"endpoint": "generate"}
        if r.status_code >= 400:
            self._raise(r)
        data = r.json()
        msg = data.get("message", {}).get("content") or data.get("response", "")
        usage = {
            "endpoint": "chat",
            "prompt_tokens": data.get("prompt_eval_count"),
            "completion_tokens": data.get("eval_count"),
        }
        return msg, usage

    def generate(self, prompt: str) -> str:
        text, _usage = self.chat("", prompt)
        return text
