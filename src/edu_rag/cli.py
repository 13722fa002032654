from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from edu_rag.config import settings
from edu_rag.io import iter_jsonl
from edu_rag.llm_client import LLMClient
from edu_rag.logging_utils import setup_logging
from edu_rag.models import Document, SearchOutcome
from edu_rag.repair import repair_knowledge_base
from edu_rag.search import RetrievalOrchestrator
from edu_rag.store import JsonlDocumentStore
from edu_rag.vector_text import vectorize_document

app = typer.Typer(add_completion=False, help="Educational RAG platform CLI")


def _store(store_path: Optional[Path]) -> JsonlDocumentStore:
    return JsonlDocumentStore(store_path or settings.store_path)


@app.command()
def health() -> None:
    """Health check to verify config + logging works."""
    setup_logging(settings.log_level)
    log = logging.getLogger("edu_rag.health")

    log.info("Health check OK.")
    log.info("Model: %s", settings.gemini_model)
    log.info("API key configured: %s", settings.has_credentials)
    log.info("Similarity threshold: %s", settings.similarity_threshold)
    log.info("Top-k: %s", settings.top_k)
    log.info("Store: %s", settings.store_path)

    typer.echo("OK")


@app.command()
def version() -> None:
    """Print version and exit."""
    typer.echo("edu-rag 0.1.0")


@app.command()
def load(
    docs_file: Path = typer.Argument(..., help="JSONL file with one document per line"),
    store_path: Optional[Path] = typer.Option(None, "--store", help="Knowledge base JSONL (default: STORE_PATH)"),
) -> None:
    """
    Insert documents into the knowledge base, vectors attached.
    """
    setup_logging(settings.log_level)
    store = _store(store_path)

    async def _run() -> int:
        added = 0
        for obj in iter_jsonl(docs_file):
            doc = Document.model_validate(obj)
            doc = doc.model_copy(update={"id": None, "vector": vectorize_document(doc)})
            await store.insert(doc)
            added += 1
        return added

    added = asyncio.run(_run())
    typer.echo({"added": added, "store": str(store.path)})


@app.command()
def repair(
    store_path: Optional[Path] = typer.Option(None, "--store", help="Knowledge base JSONL (default: STORE_PATH)"),
    full_scan: bool = typer.Option(False, "--full-scan", help="Check every document, not only the first"),
) -> None:
    """
    Backfill vectors on documents that lack one.
    """
    setup_logging(settings.log_level)
    strategy = "full_scan" if full_scan else settings.repair_strategy

    outcome = asyncio.run(repair_knowledge_base(_store(store_path), strategy))
    typer.echo(outcome.model_dump())


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query (natural language)"),
    store_path: Optional[Path] = typer.Option(None, "--store", help="Knowledge base JSONL (default: STORE_PATH)"),
) -> None:
    """
    Retrieve relevant reports and print an AI-grounded answer for each.
    """
    setup_logging(settings.log_level)

    async def _run():
        async with LLMClient(settings) as llm:
            orchestrator = RetrievalOrchestrator(_store(store_path), llm, settings)
            started = await orchestrator.start()
            if not started.ok:
                return None, started
            return await orchestrator.search(query), started

    response, started = asyncio.run(_run())

    if response is None:
        typer.secho(f"NOT READY: {started.error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if not response.ok:
        failed = response.outcome == SearchOutcome.SEARCH_FAILED
        typer.secho(f"{response.outcome.value}: {response.message}", fg=typer.colors.RED if failed else typer.colors.YELLOW)
        raise typer.Exit(code=1 if failed else 0)

    typer.secho(response.message, fg=typer.colors.GREEN)
    for rank, c in enumerate(response.results, start=1):
        typer.echo("=" * 80)
        typer.echo(f"Rank: {rank} | Score: {c.score:.4f}")
        typer.echo(f"Title: {c.document.title}")
        if c.document.url:
            typer.echo(f"URL:   {c.document.url}")
        typer.echo()
        typer.echo(c.summary or "")
