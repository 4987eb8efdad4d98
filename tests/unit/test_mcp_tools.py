"""Tests for MCP tool core functions."""

import asyncio
from typing import Any

from docsearch.core.document_search import DocumentSearch
from docsearch.mcp.server import (
    docsearch_get_document,
    docsearch_list_branches,
    docsearch_search,
)
from tests.unit.fakes import FakeSource


def test_docsearch_list_branches(session: DocumentSearch) -> None:
    result = docsearch_list_branches(session)

    assert result["count"] == 2
    assert result["selected"] == "master"
    assert [b["id"] for b in result["branches"]] == ["master", "zzz_branch"]


def test_docsearch_search_returns_results_with_metadata(session: DocumentSearch) -> None:
    result = docsearch_search(session, query="default", mode="connections")

    assert result["count"] == 3
    assert result["total"] == 3
    assert result["has_more"] is False
    url_map = next(r for r in result["results"] if r["type"] == "urlmaps")
    assert url_map["link"] == "/config/master/urlmaps/__default__"
    assert url_map["connections"]["acl"] == ["5828321c37e0", "__default__"]
    rate_limit = next(r for r in result["results"] if r["type"] == "ratelimits")
    assert rate_limit["connections"] == {"url_map_entries": ["default", "name"]}


def test_docsearch_search_paginates(session: DocumentSearch) -> None:
    first = docsearch_search(session, limit=5)
    second = docsearch_search(session, limit=5, offset=first["next_offset"])

    assert first["total"] == 8
    assert first["count"] == 5
    assert first["has_more"] is True
    assert second["count"] == 3
    assert second["has_more"] is False
    assert "next_offset" not in second


def test_docsearch_search_negative_offset_starts_at_first_result(
    session: DocumentSearch,
) -> None:
    result = docsearch_search(session, limit=5, offset=-3)

    assert result["count"] == 5
    assert result["results"][0]["id"] == "__default__"
    assert result["has_more"] is True
    assert result["next_offset"] == 5


def test_search_and_lookup_wait_for_branch_switch(
    session: DocumentSearch, source: FakeSource
) -> None:
    gate = source.block("zzz_branch", "aclpolicies")
    during: dict[str, dict[str, Any]] = {}

    async def scenario() -> None:
        switch = asyncio.create_task(session.select_branch("zzz_branch"))
        try:
            await source.wait_until_fetched("zzz_branch", "aclpolicies")
            during["search"] = docsearch_search(session, query="default")
            during["lookup"] = docsearch_get_document(
                session, doc_type="urlmaps", doc_id="__default__"
            )
        finally:
            gate.set()
        await switch

    asyncio.run(scenario())

    assert during["search"]["error"] == "Branch 'zzz_branch' is still being indexed."
    assert during["search"]["results"] == []
    assert "error" in during["lookup"]
    after = docsearch_search(session)
    assert after["branch"] == "zzz_branch"
    assert [r["link"] for r in after["results"]] == ["/config/zzz_branch/aclpolicies/zzz-acl"]


def test_docsearch_search_unknown_mode(session: DocumentSearch) -> None:
    result = docsearch_search(session, query="x", mode="owner")

    assert "error" in result
    assert result["results"] == []


def test_docsearch_search_without_branch(source: FakeSource) -> None:
    source.branches = []
    search = DocumentSearch(source)
    asyncio.run(search.start())

    result = docsearch_search(search, query="default")

    assert result["error"] == "No configuration branch available."


def test_docsearch_get_document_returns_raw_document(session: DocumentSearch) -> None:
    result = docsearch_get_document(session, doc_type="ratelimits", doc_id="f971e92459e2")

    assert "error" not in result
    assert result["name"] == "Rate Limit Example Rule 5/60"
    assert result["document"]["limit"] == "5"


def test_docsearch_get_document_not_found(session: DocumentSearch) -> None:
    result = docsearch_get_document(session, doc_type="urlmaps", doc_id="missing")

    assert result == {"error": "Document 'urlmaps/missing' not found."}


def test_docsearch_get_document_unknown_type(session: DocumentSearch) -> None:
    result = docsearch_get_document(session, doc_type="policies", doc_id="x")

    assert result["error"].startswith("Unknown document type 'policies'")
