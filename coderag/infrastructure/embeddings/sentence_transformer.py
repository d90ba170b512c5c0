import logging
from functools import cached_property

from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)

# Longer inputs exceed the model's token window anyway.
MAX_INPUT_CHARS = 4000


class SentenceTransformerEmbedder:
    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        self._model_name = model_name

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        truncated = [text[:MAX_INPUT_CHARS] for text in texts]
        embeddings = self.model.encode(
            truncated, convert_to_numpy=True, normalize_embeddings=True
        )
        return embeddings.tolist()
