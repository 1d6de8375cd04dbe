"""CLI entry point — Typer app for kbrag commands.

Usage:
    kbrag chunk handbook.txt --size 500 --overlap 100
    kbrag ingest handbook.txt --document-id 1 --category "policy"
    kbrag search "How do I reset my password?" --category policy
    kbrag metrics judgments.yaml
    kbrag eval eval_data/scenarios
    kbrag status
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.table import Table

from kbrag.config import Settings, load_settings

app = typer.Typer(
    name="kbrag",
    help="Knowledge-base retrieval engine — chunk, ingest, search, evaluate.",
    no_args_is_help=True,
)

console = Console()

_TEXT_PATH = typer.Argument(..., help="Path to a UTF-8 text document")
_JUDGMENTS_PATH = typer.Argument(..., help="YAML/JSON file with judged retrieval results")
_EVAL_PATH = typer.Argument(..., help="Path to scenario YAML files")

_state: dict[str, Settings] = {}


def _preview(text: str, width: int = 80) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


def _settings() -> Settings:
    if "settings" not in _state:
        _state["settings"] = load_settings()
    return _state["settings"]


def _open_stores(settings: Settings, dimension: int):
    """Build chunk and statistics stores, loading persisted state if present."""
    from kbrag.statistics.memory_store import MemoryStatisticsStore
    from kbrag.store.factory import get_chunk_store

    chunk_store = get_chunk_store(settings.store.backend, dimension=dimension)
    stats_store = MemoryStatisticsStore(chunk_store=chunk_store)

    path = Path(settings.store.path)
    if (path / "chunks.json").exists():
        chunk_store.load(str(path))
    if (path / "statistics.json").exists():
        stats_store.load(str(path))
    return chunk_store, stats_store


def _save_stores(settings: Settings, chunk_store, stats_store) -> None:
    chunk_store.save(settings.store.path)
    stats_store.save(settings.store.path)


@app.callback()
def main(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Settings YAML (default: nearest settings.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging and settings for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _state["settings"] = load_settings(config)


@app.command()
def chunk(
    path: Annotated[Path, _TEXT_PATH],
    chunk_size: int | None = typer.Option(None, "--size", "-s", help="Target chunk size"),
    overlap: int | None = typer.Option(None, "--overlap", "-o", help="Overlap between chunks"),
) -> None:
    """Split a text document into overlapping chunks and print them."""
    from kbrag.chunking.text_chunker import TextChunker

    settings = _settings().chunking
    chunker = TextChunker(
        chunk_size=chunk_size if chunk_size is not None else settings.chunk_size,
        overlap=overlap if overlap is not None else settings.chunk_overlap,
    )
    chunks = chunker.chunk(path.read_text(encoding="utf-8"))

    table = Table(title=f"{path.name}: {len(chunks)} chunks")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Text")

    for c in chunks:
        table.add_row(str(c.chunk_index + 1), str(c.char_count), _preview(c.text))

    console.print(table)


@app.command()
def ingest(
    path: Annotated[Path, _TEXT_PATH],
    document_id: int = typer.Option(..., "--document-id", "-d", help="Source document id"),
    category: str = typer.Option("", "--category", help="Document category"),
    title: str = typer.Option("", "--title", "-t", help="Document title"),
    chunk_size: int | None = typer.Option(None, "--size", "-s", help="Target chunk size"),
    overlap: int | None = typer.Option(None, "--overlap", "-o", help="Overlap between chunks"),
) -> None:
    """Chunk, embed and store a document."""
    from kbrag.chunking.schemas import SourceDocument
    from kbrag.chunking.text_chunker import TextChunker
    from kbrag.embeddings.factory import provider_from_settings
    from kbrag.pipeline.chunks import ChunkService
    from kbrag.pipeline.ingest import IngestPipeline

    settings = _settings()
    emb = provider_from_settings(settings.embedding)
    chunk_store, stats_store = _open_stores(settings, emb.dimension)

    pipeline = IngestPipeline(
        ChunkService(emb, chunk_store, stats_store),
        chunker=TextChunker.from_settings(settings.chunking),
    )
    document = SourceDocument(
        id=document_id,
        text=path.read_text(encoding="utf-8"),
        category=category,
        title=title or path.stem,
    )
    result = pipeline.ingest_document(document, chunk_size=chunk_size, overlap=overlap)
    _save_stores(settings, chunk_store, stats_store)

    console.print(f"\n[bold green]Ingested:[/] {path.name} (document {document_id})")
    console.print(f"  Chunks: {result.chunks_created}")
    console.print(f"  Embedded: {result.chunks_embedded}")
    console.print(f"  Stored: {result.chunks_stored}")

    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int | None = typer.Option(None, "--limit", "-k", help="Maximum results"),
    min_similarity: float | None = typer.Option(
        None, "--min-similarity", "-m", help="Minimum vector similarity",
    ),
    keyword_weight: float | None = typer.Option(
        None, "--keyword-weight", "-w", help="Keyword share of the blended score",
    ),
    search_type: str | None = typer.Option(
        None, "--search-type", help="vector, hybrid or keyword",
    ),
    category: list[str] | None = typer.Option(
        None, "--category", help="Category filter token (repeatable)",
    ),
    record: bool = typer.Option(
        True, "--record/--no-record", help="Update usage and quality statistics",
    ),
) -> None:
    """Search stored chunks with hybrid vector/keyword ranking."""
    from kbrag.embeddings.factory import provider_from_settings
    from kbrag.retrieval.hybrid import HybridRetriever
    from kbrag.retrieval.retriever import Retriever
    from kbrag.retrieval.schemas import RetrievalConfig, SearchType
    from kbrag.statistics.tracker import StatisticsTracker

    settings = _settings()
    emb = provider_from_settings(settings.embedding)
    chunk_store, stats_store = _open_stores(settings, emb.dimension)

    overrides = {
        "limit": limit,
        "min_similarity": min_similarity,
        "keyword_weight": keyword_weight,
        "search_type": SearchType(search_type) if search_type else None,
        "category_filter": category or None,
    }
    config = RetrievalConfig.from_settings(
        settings.retrieval, **{k: v for k, v in overrides.items() if v is not None},
    )

    tracker = StatisticsTracker.from_settings(stats_store, settings.evaluation) if record else None
    retriever = Retriever(
        emb,
        chunk_store,
        ranker=HybridRetriever(
            normalize_keyword_scores=settings.retrieval.normalize_keyword_scores,
        ),
        tracker=tracker,
    )
    result = retriever.retrieve(query, config=config)
    if record:
        stats_store.save(settings.store.path)

    if not result.results:
        console.print("[yellow]No results.[/]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("Rank", style="cyan", justify="right")
    table.add_column("Chunk", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Vector", justify="right")
    table.add_column("Keyword", justify="right")
    table.add_column("Title")
    table.add_column("Text")

    for r in result.results:
        table.add_row(
            str(r.rank),
            str(r.chunk_id),
            f"{r.combined_score:.3f}",
            f"{r.vector_score:.3f}",
            f"{r.keyword_score:.3f}",
            r.chunk.title,
            _preview(r.chunk.content, 60),
        )

    console.print(table)
    console.print(
        f"[dim]Candidates: {result.total_candidates} | Search type: {result.search_type.value}[/]",
    )


def _print_metrics(title: str, values: dict[str, float]) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in values.items():
        table.add_row(name, f"{value:.4f}" if isinstance(value, float) else str(value))
    console.print(table)


@app.command()
def metrics(
    path: Annotated[Path, _JUDGMENTS_PATH],
) -> None:
    """Compute retrieval quality metrics from a judged result list.

    The file holds ``total_relevant`` and a ``chunks`` list of
    ``{chunk_id, similarity_score, position, is_relevant}`` items.
    """
    from kbrag.evaluation.retrieval_metrics import RAGQualityMetrics
    from kbrag.evaluation.schemas import RetrievedChunk

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    chunks = [
        RetrievedChunk(
            chunk_id=int(item["chunk_id"]),
            similarity_score=float(item.get("similarity_score", 0.0)),
            position=int(item.get("position", i + 1)),
            is_relevant=bool(item.get("is_relevant", False)),
        )
        for i, item in enumerate(data.get("chunks", []))
    ]
    total_relevant = int(data.get("total_relevant", sum(1 for c in chunks if c.is_relevant)))

    result = RAGQualityMetrics().calculate_all_metrics(chunks, total_relevant)
    _print_metrics(f"{path.name}: {len(chunks)} results, {total_relevant} relevant", result.to_dict())


@app.command()
def eval(
    scenario_path: Annotated[Path, _EVAL_PATH],
) -> None:
    """Run evaluation scenarios against the stored chunks and report metrics."""
    from kbrag.embeddings.factory import provider_from_settings
    from kbrag.evaluation.runner import EvalRunner
    from kbrag.retrieval.hybrid import HybridRetriever
    from kbrag.retrieval.retriever import Retriever
    from kbrag.retrieval.schemas import RetrievalConfig

    settings = _settings()
    scenarios = EvalRunner.load_scenarios(scenario_path)
    console.print(f"\nLoaded [bold]{len(scenarios)}[/] evaluation scenarios\n")

    emb = provider_from_settings(settings.embedding)
    chunk_store, _ = _open_stores(settings, emb.dimension)
    retriever = Retriever(
        emb,
        chunk_store,
        ranker=HybridRetriever(
            normalize_keyword_scores=settings.retrieval.normalize_keyword_scores,
        ),
    )
    runner = EvalRunner(retriever, config=RetrievalConfig.from_settings(settings.retrieval))
    results = runner.run(scenarios)

    table = Table(title="Evaluation Results")
    table.add_column("ID", style="cyan")
    table.add_column("Query")
    table.add_column("P@K", justify="right")
    table.add_column("R@K", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("MRR", justify="right")
    table.add_column("MAP", justify="right")
    table.add_column("NDCG", justify="right")

    for r in results:
        m = r.metrics
        table.add_row(
            r.scenario_id,
            _preview(r.query, 40),
            f"{m.precision_at_k:.3f}",
            f"{m.recall_at_k:.3f}",
            f"{m.f1_at_k:.3f}",
            f"{m.mrr:.3f}",
            f"{m.map:.3f}",
            f"{m.ndcg:.3f}",
        )

    console.print(table)
    if results:
        _print_metrics("Summary", EvalRunner.summary(results))


@app.command()
def status(
    top: int = typer.Option(5, "--top", "-n", help="Number of most-used chunks to list"),
) -> None:
    """Show system status (providers, config, stored chunks, usage)."""
    from kbrag.embeddings.factory import available_providers
    from kbrag.store.factory import available_stores

    settings = _settings()
    console.print("\n[bold green]kb-retrieval-engine[/] v0.1.0\n")

    table = Table(title="Configuration")
    table.add_column("Layer", style="cyan")
    table.add_column("Value")

    table.add_row("Embedding Providers", ", ".join(available_providers()))
    table.add_row("Chunk Stores", ", ".join(available_stores()))
    table.add_row(
        "Embedding",
        f"{settings.embedding.provider} / {settings.embedding.model} ({settings.embedding.dimension})",
    )
    table.add_row("Store", f"{settings.store.backend} @ {settings.store.path}")
    table.add_row(
        "Chunking",
        f"size={settings.chunking.chunk_size} overlap={settings.chunking.chunk_overlap}",
    )
    table.add_row(
        "Retrieval",
        f"{settings.retrieval.search_type} limit={settings.retrieval.limit} "
        f"min_similarity={settings.retrieval.min_similarity} "
        f"keyword_weight={settings.retrieval.keyword_weight}",
    )

    chunk_store, stats_store = _open_stores(settings, settings.embedding.dimension)
    table.add_row("Stored Chunks", str(chunk_store.count()))
    console.print(table)

    rows = stats_store.get_top_by_usage(top)
    if not rows:
        return

    usage = Table(title="Most Used Chunks")
    usage.add_column("Chunk", style="cyan", justify="right")
    usage.add_column("Uses", justify="right")
    usage.add_column("F1", justify="right")
    usage.add_column("Title")
    usage.add_column("Text")
    for row in rows:
        usage.add_row(
            str(row.chunk_id),
            str(row.usage_count),
            f"{row.f1_score:.3f}" if row.f1_score is not None else "-",
            row.document_title,
            _preview(row.content, 50),
        )
    console.print(usage)


if __name__ == "__main__":
    app()
