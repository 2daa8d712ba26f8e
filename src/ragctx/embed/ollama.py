"""Ollama embedding backend using the /api/embed endpoint."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ragctx.exceptions import BackendUnavailableError, EmbeddingError

if TYPE_CHECKING:
    from ragctx.config import EmbeddingConfig

__all__ = ["OllamaBackend", "load_ollama_backend"]

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaBackend:
    """Callable backend talking to a local Ollama instance.

    Config fields used::

        [embedding]
        provider = "ollama"
        model = "nomic-embed-text"
        dimensions = 768        # must match the model output
        base_url = ""           # empty = http://localhost:11434
    """

    _DEFAULT_TIMEOUT = 120  # seconds

    def __init__(self, model: str, base_url: str = "") -> None:
        self._model = model
        self._base_url = (base_url or _DEFAULT_BASE_URL).rstrip("/")

    def __call__(self, texts: list[str]) -> list[list[float]]:
        """Call the Ollama /api/embed endpoint.

        Args:
            texts: List of text strings to embed.

        Returns:
            List of embedding vectors.

        Raises:
            EmbeddingError: On connection or API errors.
        """
        url = f"{self._base_url}/api/embed"
        payload = json.dumps({"model": self._model, "input": texts}).encode("utf-8")
        req = Request(url, data=payload, headers={"Content-Type": "application/json"})

        try:
            with urlopen(req, timeout=self._DEFAULT_TIMEOUT) as resp:
                body = resp.read()
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise EmbeddingError(f"Ollama returned invalid JSON from {url}") from e
        except HTTPError as e:
            raise EmbeddingError(f"Ollama API error (HTTP {e.code}): {e.reason}") from e
        except (ConnectionError, URLError) as e:
            raise EmbeddingError(
                f"Ollama not reachable at {self._base_url}. Is Ollama running? Error: {e}"
            ) from e

        embeddings: list[list[float]] = data.get("embeddings", [])
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} inputs"
            )
        return embeddings


def load_ollama_backend(config: EmbeddingConfig) -> OllamaBackend:
    """Create an Ollama backend and probe it once.

    Raises:
        BackendUnavailableError: If the server is unreachable or rejects the model.
    """
    backend = OllamaBackend(model=config.model, base_url=config.base_url)
    try:
        backend(["dimension probe"])
    except EmbeddingError as e:
        raise BackendUnavailableError(str(e)) from e

    logger.info("Ollama backend ready (%s)", config.model)
    return backend
