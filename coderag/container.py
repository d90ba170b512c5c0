import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def close(self) -> None:
        """Close cached instances that hold resources, then forget them."""
        for instance in self._singletons.values():
            close = getattr(instance, "close", None)
            if callable(close):
                close()
        self._singletons.clear()

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def create_embedder(settings: Settings):
    """Select the embedding capability once, from settings.

    Returns:
        Embedder, or None when embeddings are disabled.
    """
    provider = settings.embedding_provider.lower()

    if provider == "none":
        logger.info("Embeddings disabled, keyword search only")
        return None

    if provider == "auto":
        if settings.openai_api_key:
            provider = "openai"
        elif settings.embedding_base_url:
            provider = "openai-compatible"
        else:
            provider = "local"

    if provider in ("openai", "openai-compatible"):
        from .infrastructure.embeddings.openai_compatible import OpenAICompatibleEmbedder

        if settings.embedding_base_url:
            logger.info(f"Using custom embedding endpoint: {settings.embedding_base_url}")
            api_key = settings.embedding_api_key or settings.openai_api_key or "not-needed"
        else:
            if not settings.openai_api_key:
                raise ValueError("embedding_provider=openai requires OPENAI_API_KEY")
            logger.info(f"Using OpenAI embeddings ({settings.openai_embedding_model})")
            api_key = settings.openai_api_key

        return OpenAICompatibleEmbedder(
            api_key=api_key,
            base_url=settings.embedding_base_url,
            model_name=settings.openai_embedding_model,
            dimensions=settings.embedding_dimensions,
        )

    if provider == "local":
        from .infrastructure.embeddings.sentence_transformer import (
            SentenceTransformerEmbedder,
        )

        logger.info(f"Using local embeddings ({settings.embedding_model}, no API key needed)")
        return SentenceTransformerEmbedder(settings.embedding_model)

    raise ValueError(f"Unknown embedding provider: {settings.embedding_provider}")


def configure_container(settings: Settings, embedder: Optional[Any] = None) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.
        embedder: Embedder override; selected from settings when omitted.

    Returns:
        Configured container.
    """
    from .core.chunking.chunker import Chunker
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.index_store import IndexStoreProtocol
    from .core.services.change_detector import ChangeDetector
    from .core.services.ingest_service import IngestService
    from .core.services.search_service import SearchService
    from .core.strategies.fusion import ReciprocalRankFusion
    from .infrastructure.index_stores.sqlite_store import SQLiteIndexStore

    container.reset()

    container.register(
        EmbedderProtocol,
        (lambda: embedder) if embedder is not None else (lambda: create_embedder(settings)),
        singleton=True,
    )

    container.register(
        IndexStoreProtocol,
        lambda: SQLiteIndexStore(settings.data_dir),
        singleton=True,
    )

    container.register(
        Chunker,
        lambda: Chunker(
            max_lines=settings.chunk_max_lines,
            overlap_lines=settings.chunk_overlap_lines,
            min_gap=settings.chunk_min_gap,
        ),
        singleton=True,
    )

    container.register(
        ChangeDetector,
        lambda: ChangeDetector(container.resolve(IndexStoreProtocol)),
        singleton=True,
    )

    container.register(
        SearchService,
        lambda: SearchService(
            store=container.resolve(IndexStoreProtocol),
            embedder=container.resolve(EmbedderProtocol),
            fusion=ReciprocalRankFusion(k=settings.rrf_k),
            default_limit=settings.search_limit,
        ),
        singleton=True,
    )

    container.register(
        IngestService,
        lambda: IngestService(
            store=container.resolve(IndexStoreProtocol),
            chunker=container.resolve(Chunker),
            change_detector=container.resolve(ChangeDetector),
            embedder=container.resolve(EmbedderProtocol),
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container
