"""CLI for docsearch (branches, search, links, MCP server)."""

import asyncio
import json
from dataclasses import dataclass
from typing import Annotated

import typer
from loguru import logger

from docsearch.api import ConfApi
from docsearch.core.document_search import DocumentSearch
from docsearch.core.search.searcher import parse_search_mode
from docsearch.logging_config import configure_logging
from docsearch.models.document import DocType, NormalizedDocument
from docsearch.protocols import DocumentSourceProtocol

app = typer.Typer(help="Search configuration documents across a branch.")


@dataclass
class _Options:
    url: str | None = None
    cache: bool = False


def _make_source(ctx: typer.Context) -> DocumentSourceProtocol:
    opts: _Options = ctx.obj or _Options()
    return ConfApi(opts.url, from_cache=opts.cache)


async def _open_session(source: DocumentSourceProtocol, branch: str | None) -> DocumentSearch:
    """Load branches and switch to ``branch`` (default: the first one)."""
    session = DocumentSearch(source)
    await session.start()
    if branch and branch != session.selected_branch:
        await session.select_branch(branch)
    return session


def _require_branch(session: DocumentSearch, branch: str | None) -> str:
    if branch and session.selected_branch != branch:
        logger.error("Branch not found: {}", branch)
        raise typer.Exit(1)
    if session.selected_branch is None:
        logger.error("No configuration branches available.")
        raise typer.Exit(1)
    return session.selected_branch


def _doc_to_dict(doc: NormalizedDocument) -> dict[str, object]:
    return {
        "id": doc.id,
        "type": doc.doc_type.value,
        "name": doc.name,
        "description": doc.description,
        "tags": list(doc.tags),
        "connectedACL": list(doc.connected_acl),
        "connectedWAF": list(doc.connected_waf),
        "connectedRateLimits": list(doc.connected_rate_limits),
        "connectedURLMapEntries": list(doc.connected_url_map_entries),
    }


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    url: Annotated[
        str | None,
        typer.Option("--url", "-u", help="Configuration API root (default: $DOCSEARCH_API_URL)"),
    ] = None,
    cache: bool = typer.Option(
        False,
        "--cache",
        "-C",
        help="Cache requests and use cache. Returns stale data, but avoids load "
        "on the backend while developing",
    ),
) -> None:
    configure_logging(verbose=verbose)
    ctx.obj = _Options(url=url, cache=cache)


@app.command()
def branches(ctx: typer.Context) -> None:
    """List configuration branches."""
    session = asyncio.run(_open_session(_make_source(ctx), None))
    if not session.branches:
        typer.echo("No branches found.")
        raise typer.Exit(1)
    typer.echo(f"{len(session.branches)} branches:\n")
    for b in session.branches:
        marker = "*" if b.id == session.selected_branch else " "
        typer.echo(f"{marker} {b.id}  version={b.version}")


@app.command()
def search(
    ctx: typer.Context,
    text: str = typer.Argument("", help="Text to search for (empty matches everything)"),
    mode: str = typer.Option(
        "all",
        "--mode",
        "-m",
        help="all, type, id, name, description, tags or connections",
    ),
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Branch to search (default: first branch)"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Search documents of every type on a branch."""
    try:
        search_mode = parse_search_mode(mode)
    except ValueError as exc:
        logger.error("{}", exc)
        raise typer.Exit(2) from None

    session = asyncio.run(_open_session(_make_source(ctx), branch))
    branch_id = _require_branch(session, branch)

    session.set_mode(search_mode)
    results = session.set_text(text)

    if output_json:
        data = {
            "branch": branch_id,
            "mode": search_mode.value,
            "results": [_doc_to_dict(d) for d in results],
            "total": len(results),
        }
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Found {len(results)} documents on {branch_id} (of {len(session.index)}):\n")
    for doc in results:
        typer.echo(f"  [{doc.doc_type.label}] {doc.name or '(unnamed)'}")
        typer.echo(f"    id={doc.id}")
        if doc.description:
            typer.echo(f"    description: {doc.description[:60]}")
        if doc.tags:
            typer.echo(f"    tags: {', '.join(doc.tags)}")
        for label, ids in (
            ("ACL Policies", doc.connected_acl),
            ("WAF Policies", doc.connected_waf),
            ("Rate Limits", doc.connected_rate_limits),
            ("URL Maps Entries", doc.connected_url_map_entries),
        ):
            if ids:
                typer.echo(f"    {label}: {', '.join(ids)}")
        typer.echo()


@app.command()
def link(
    ctx: typer.Context,
    doc_type: str = typer.Argument(..., help="Document type, e.g. urlmaps"),
    doc_id: str = typer.Argument(..., help="Document id"),
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Branch (default: first branch)"),
    ] = None,
) -> None:
    """Print the console path of a document's edit view."""
    try:
        target_type = DocType(doc_type)
    except ValueError:
        logger.error("Unknown document type: {}", doc_type)
        raise typer.Exit(2) from None

    session = asyncio.run(_open_session(_make_source(ctx), branch))
    _require_branch(session, branch)

    target = session.go_to_document(target_type, doc_id)
    if target is None or session.index.find(target_type, doc_id) is None:
        typer.echo(f"Document '{doc_type}/{doc_id}' not found.")
        raise typer.Exit(1)
    typer.echo(target.path)


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from docsearch.mcp.server import run_mcp_server

    run_mcp_server()
