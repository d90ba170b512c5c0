
import logging
import sys
import time

from coderag.config.settings import Settings, settings
from coderag.container import configure_container, container
from coderag.core.errors import EmbeddingUnavailableError
from coderag.core.models.document import SearchResult
from coderag.core.protocols.embedder import EmbedderProtocol
from coderag.core.services.ingest_service import IngestService
from coderag.core.services.search_service import SearchService
from coderag.infrastructure.sources.local_directory import LocalDirectorySource

logger = logging.getLogger(__name__)

USAGE = """\
Usage: coderag <command> [args]

Commands:
  index <dir> [--no-embed] [--force] [--prune] [--collection=NAME]
                       Index a local checkout
  search <query>       Keyword search (FTS5 + bm25)
  vsearch <query>      Semantic vector search
  query <query>        Hybrid search (keyword + semantic, RRF)
  stats                Show index statistics

Search options:
  --limit=N            Number of results

Environment:
  DATA_DIR             Data directory (default: ./data)
  EMBEDDING_PROVIDER   auto | local | openai | none
  OPENAI_API_KEY       Use OpenAI embeddings
  EMBEDDING_BASE_URL   Custom OpenAI-compatible endpoint"""


def split_args(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Split arguments into positionals and --flag[=value] options."""
    positional = []
    options = {}
    for arg in args:
        if arg.startswith("--"):
            name, _, value = arg[2:].partition("=")
            options[name] = value
        else:
            positional.append(arg)
    return positional, options


def keyword_only(base: Settings) -> Settings:
    """Settings copy that skips loading an embedding model."""
    return base.model_copy(update={"embedding_provider": "none"})


def warm_up_embedder() -> None:
    """Load the embedding model or check the endpoint before timed work."""
    embedder = container.resolve(EmbedderProtocol)
    if embedder is None:
        return
    try:
        embedder.warmup()
    except Exception as e:
        logger.warning(f"Embedding warmup failed: {e}")


def format_result(index: int, result: SearchResult, preview_lines: int = 4) -> str:
    lines = [
        f"{index}. {result.file_path}:{result.start_line}-{result.end_line} "
        f"(score: {result.score:.3f}, {result.method.value})"
    ]
    preview = result.content.split("\n")[:preview_lines]
    lines.extend(f"   {line}" for line in preview)
    return "\n".join(lines)


def cmd_index(args: list[str]) -> int:
    """Index command - chunk, store and embed a directory."""
    positional, options = split_args(args)
    if not positional:
        print("Usage: coderag index <dir> [--no-embed] [--force] [--prune] [--collection=NAME]")
        return 1

    source = LocalDirectorySource(positional[0], max_file_size=settings.max_file_size)
    collection = options.get("collection") or source.collection
    embed = "no-embed" not in options

    configure_container(keyword_only(settings) if not embed else settings)
    if embed:
        warm_up_embedder()
    ingest_service = container.resolve(IngestService)

    report = ingest_service.run(
        collection,
        source.root,
        source.files(),
        embed=embed,
        force="force" in options,
        prune="prune" in options,
    )

    if report.failed:
        logger.warning(f"Failed to index {len(report.failed)} files")
    if report.embed_failures:
        logger.warning(f"Failed to embed {len(report.embed_failures)} files")

    stats = container.resolve(SearchService).stats()
    logger.info(
        f"Index: {stats.document_count} files, {stats.chunk_count} chunks, "
        f"{stats.vector_count} vectors"
    )
    return 0


def cmd_search(args: list[str], mode: str) -> int:
    """Search command - keyword, semantic or hybrid."""
    positional, options = split_args(args)
    query = " ".join(positional)
    if not query:
        print(f"Usage: coderag {mode} <query> [--limit=N]")
        return 1

    try:
        limit = int(options["limit"]) if options.get("limit") else settings.search_limit
    except ValueError:
        print(f"Usage: coderag {mode} <query> [--limit=N]")
        return 1

    configure_container(keyword_only(settings) if mode == "search" else settings)
    search_service = container.resolve(SearchService)
    if mode != "search":
        warm_up_embedder()

    start = time.perf_counter()
    try:
        if mode == "search":
            results = search_service.keyword(query, limit)
        elif mode == "vsearch":
            results = search_service.semantic(query, limit)
        else:
            results = search_service.hybrid(query, limit)
    except EmbeddingUnavailableError as e:
        print(f"Semantic search unavailable: {e}. Use 'search' for keyword search.")
        return 1
    elapsed = (time.perf_counter() - start) * 1000

    print(f"\n{mode} for \"{query}\" ({elapsed:.0f}ms, {len(results)} results)\n")
    for i, result in enumerate(results, 1):
        print(format_result(i, result))
        print()
    return 0


def cmd_stats() -> int:
    """Stats command - index counters."""
    configure_container(keyword_only(settings))
    stats = container.resolve(SearchService).stats()

    print("Codebase RAG Index")
    print(f"  Files:       {stats.document_count}")
    print(f"  Chunks:      {stats.chunk_count}")
    print(f"  Vectors:     {stats.vector_count}")
    print(f"  Collections: {', '.join(stats.collections) or 'none'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    if not argv:
        print(USAGE)
        return 1

    command, args = argv[0], argv[1:]

    try:
        if command == "index":
            return cmd_index(args)
        elif command in ("search", "vsearch", "query"):
            return cmd_search(args, command)
        elif command == "stats":
            return cmd_stats()
        else:
            print(f"Unknown command: {command}")
            print(USAGE)
            return 1
    finally:
        container.close()


if __name__ == "__main__":
    sys.exit(main())
