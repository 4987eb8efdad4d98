"""MCP server exposing configuration document search tools."""

import asyncio
import os
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from docsearch.api import ConfApi
from docsearch.core.document_search import DocumentSearch
from docsearch.core.search.searcher import parse_search_mode
from docsearch.models.document import DocType, DocumentLink, NormalizedDocument, SearchQuery


def _serialize(doc: NormalizedDocument, branch: str, *, detailed: bool) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": doc.id,
        "type": doc.doc_type.value,
        "name": doc.name,
        "description": doc.description if detailed else doc.description[:120],
        "link": DocumentLink(branch=branch, doc_type=doc.doc_type, doc_id=doc.id).path,
    }
    if doc.tags:
        entry["tags"] = list(doc.tags)
    if doc.doc_type == DocType.URL_MAPS:
        entry["connections"] = {
            "acl": list(doc.connected_acl),
            "waf": list(doc.connected_waf),
            "rate_limits": list(doc.connected_rate_limits),
        }
    elif doc.connected_url_map_entries:
        entry["connections"] = {"url_map_entries": list(doc.connected_url_map_entries)}
    return entry


# --- Core functions (testable without MCP context) ---


def docsearch_list_branches(session: DocumentSearch) -> dict[str, Any]:
    """List configuration branches and the currently selected one."""
    return {
        "branches": [
            {"id": b.id, "version": b.version, "description": b.description, "date": b.date}
            for b in session.branches
        ],
        "count": len(session.branches),
        "selected": session.selected_branch,
    }


def docsearch_search(
    session: DocumentSearch,
    *,
    query: str = "",
    mode: str = "all",
    limit: int = 50,
    offset: int = 0,
    response_format: str = "concise",
) -> dict[str, Any]:
    """Search documents of the selected branch.

    Args:
        query: Case-insensitive substring; empty matches everything.
        mode: all, type, id, name, description, tags or connections.
        limit: Max results (1-200, default 50).
        offset: Pagination offset.
        response_format: "concise" or "detailed".
    """
    try:
        search_mode = parse_search_mode(mode)
    except ValueError as exc:
        return {"error": str(exc), "results": [], "count": 0, "total": 0}

    branch = session.selected_branch
    if branch is None:
        return {"error": "No configuration branch available.", "results": [], "count": 0, "total": 0}
    if not session.context.is_current:
        return {
            "error": f"Branch '{branch}' is still being indexed.",
            "results": [],
            "count": 0,
            "total": 0,
        }

    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    matched = session.search(SearchQuery(mode=search_mode, text=query))
    page = matched[offset : offset + limit]

    output: dict[str, Any] = {
        "branch": branch,
        "results": [_serialize(d, branch, detailed=response_format == "detailed") for d in page],
        "count": len(page),
        "total": len(matched),
        "has_more": offset + len(page) < len(matched),
    }
    if output["has_more"]:
        output["next_offset"] = offset + limit
    return output


def docsearch_get_document(
    session: DocumentSearch,
    *,
    doc_type: str,
    doc_id: str,
) -> dict[str, Any]:
    """Return one document as stored in the backend, plus its connections."""
    try:
        target_type = DocType(doc_type)
    except ValueError:
        valid = ", ".join(t.value for t in DocType)
        return {"error": f"Unknown document type '{doc_type}', expected one of: {valid}"}

    branch = session.index.branch
    doc = session.index.find(target_type, doc_id) if session.context.is_current else None
    if doc is None or branch is None:
        return {"error": f"Document '{doc_type}/{doc_id}' not found."}

    return {
        **_serialize(doc, branch, detailed=True),
        "document": dict(doc.raw) if isinstance(doc.raw, Mapping) else doc.raw,
    }


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    session: DocumentSearch
    branch_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load branches and index the first one on startup."""
    source = ConfApi(os.environ.get("DOCSEARCH_API_URL"))
    session = DocumentSearch(source)
    await session.start()
    logger.info(
        "Indexed {} documents on branch {}", len(session.index), session.selected_branch
    )
    yield ServerContext(session=session)


mcp_server = FastMCP(
    "docsearch",
    instructions="""\
Search the security configuration (ACL policies, WAF policies, rate limits,
flow control, URL maps and tag rules) of a configuration branch.

- Use docsearch_search_tool with mode="connections" to find which URL maps
  use a policy, or which policies a URL map uses.
- Use docsearch_get_document_tool to read the full stored document.
- Searches run against the selected branch; pass `branch` to switch.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


async def _switch_branch(ctx: ServerContext, branch: str | None) -> str | None:
    """Select ``branch`` if given; returns an error message on failure."""
    if not branch or branch == ctx.session.selected_branch:
        return None
    async with ctx.branch_lock:
        if ctx.session.context.get_branch(branch) is None:
            return f"Branch '{branch}' not found."
        await ctx.session.select_branch(branch)
    return None


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def docsearch_list_branches_tool(ctx: Context) -> dict[str, Any]:
    """List configuration branches and the selected one."""
    return docsearch_list_branches(_ctx(ctx).session)


@mcp_server.tool()
async def docsearch_search_tool(
    ctx: Context,
    query: str = "",
    mode: str = "all",
    branch: str | None = None,
    limit: int = 50,
    offset: int = 0,
    response_format: str = "concise",
) -> dict[str, Any]:
    """Search configuration documents by a case-insensitive substring.

    Pagination: When has_more is true, use next_offset in a follow-up call.

    Args:
        query: Search text; empty matches everything.
        mode: all, type, id, name, description, tags or connections.
        branch: Branch to search (switches the selected branch).
        limit: Max results (1-200, default 50).
        offset: Pagination offset.
        response_format: "concise" or "detailed".
    """
    error = await _switch_branch(_ctx(ctx), branch)
    if error:
        return {"error": error, "results": [], "count": 0, "total": 0}
    return docsearch_search(
        _ctx(ctx).session,
        query=query,
        mode=mode,
        limit=limit,
        offset=offset,
        response_format=response_format,
    )


@mcp_server.tool()
async def docsearch_get_document_tool(
    ctx: Context,
    doc_type: str,
    doc_id: str,
    branch: str | None = None,
) -> dict[str, Any]:
    """Read one configuration document.

    Args:
        doc_type: aclpolicies, tagrules, urlmaps, flowcontrol, ratelimits or wafpolicies.
        doc_id: Document id.
        branch: Branch to read from (switches the selected branch).
    """
    error = await _switch_branch(_ctx(ctx), branch)
    if error:
        return {"error": error}
    return docsearch_get_document(_ctx(ctx).session, doc_type=doc_type, doc_id=doc_id)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from docsearch.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
