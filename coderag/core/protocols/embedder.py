"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding capability."""

    @property
    def dimensions(self) -> int:
        """Length of every vector returned by ``embed``."""
        ...

    @property
    def model_name(self) -> str:
        """Human-readable model identifier."""
        ...

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed texts.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input text, in input order.
        """
        ...

    def warmup(self) -> None:
        """Pre-load the model or check the endpoint."""
        ...
