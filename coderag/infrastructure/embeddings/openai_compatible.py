import logging
import time
from typing import Optional

from openai import OpenAI

logger = logging.getLogger(__name__)


class OpenAICompatibleEmbedder:
    """Embedder for OpenAI or any OpenAI-compatible embeddings endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model_name: str = "text-embedding-3-small",
        dimensions: int = 1536,
        batch_size: int = 100,
        batch_pause: float = 0.1,
        client: Optional[OpenAI] = None,
    ):
        """Initialize embedder.

        Args:
            api_key: API key (any placeholder for keyless endpoints).
            base_url: Endpoint base URL, OpenAI when omitted.
            model_name: Embedding model.
            dimensions: Vector length produced by the model.
            batch_size: Texts per request.
            batch_pause: Seconds to wait between requests.
            client: Preconfigured client.
        """
        self._client = client or OpenAI(api_key=api_key, base_url=base_url)
        self._model_name = model_name
        self._dimensions = dimensions
        self._batch_size = batch_size
        self._batch_pause = batch_pause

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def warmup(self) -> None:
        pass

    def embed(self, texts: list[str]) -> list[list[float]]:
        embeddings: list[list[float]] = []

        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            response = self._client.embeddings.create(model=self._model_name, input=batch)

            ordered = sorted(response.data, key=lambda item: item.index)
            embeddings.extend(list(item.embedding) for item in ordered)

            if i + self._batch_size < len(texts):
                time.sleep(self._batch_pause)

        logger.debug(f"Embedded {len(texts)} texts with {self._model_name}")
        return embeddings
