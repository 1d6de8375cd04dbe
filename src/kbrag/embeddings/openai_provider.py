"""Embeddings from the OpenAI API (``openai`` extra).

The client reads ``OPENAI_API_KEY`` unless a key is passed. An explicit
``dimensions`` is sent with every request so text-embedding-3 models
return vectors of the configured store dimension.
"""

from __future__ import annotations

import logging
from typing import Any

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import EmbeddingError

logger = logging.getLogger(__name__)

OPENAI_MODEL = "text-embedding-3-small"

NATIVE_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

MAX_INPUTS = 2048  # per request


class OpenAIEmbeddingProvider(EmbeddingProvider):
    def __init__(
        self,
        model: str = OPENAI_MODEL,
        api_key: str | None = None,
        dimensions: int | None = None,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError(
                "OpenAI embeddings need the openai extra: "
                "pip install 'kb-retrieval-engine[openai]'"
            ) from exc

        self.model = model
        self._requested_dimensions = dimensions
        self._dimension = dimensions or NATIVE_DIMENSIONS.get(model, 1536)
        self._client: Any = openai.OpenAI(api_key=api_key)
        self._api_error: type[Exception] = openai.OpenAIError

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), MAX_INPUTS):
            vectors.extend(self._request(texts[start : start + MAX_INPUTS]))
        return vectors

    def embed_query(self, query: str) -> list[float]:
        return self._request([query])[0]

    def _request(self, inputs: list[str]) -> list[list[float]]:
        params: dict[str, Any] = {"model": self.model, "input": inputs}
        if self._requested_dimensions:
            params["dimensions"] = self._requested_dimensions
        try:
            resp = self._client.embeddings.create(**params)
        except self._api_error as exc:
            logger.error("OpenAI embedding failed (model=%s): %s", self.model, exc)
            raise EmbeddingError(f"OpenAI embedding failed: {exc}") from exc
        return [item.embedding for item in sorted(resp.data, key=lambda item: item.index)]
