"""Stateful search session: a branch context plus the current query."""

from dataclasses import replace

from docsearch.config import resolve_fetch_timeout
from docsearch.core.branches import BranchContext
from docsearch.core.index import IndexBuilder
from docsearch.core.search.searcher import filter_documents, parse_search_mode
from docsearch.models.document import (
    AggregateIndex,
    Branch,
    DocType,
    DocumentLink,
    NormalizedDocument,
    SearchMode,
    SearchQuery,
)
from docsearch.protocols import DocumentSourceProtocol


class DocumentSearch:
    """Search across all configuration documents of the selected branch.

    Changing the mode or text only re-filters the current index; changing
    the branch rebuilds it first.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol,
        *,
        fetch_timeout: float | None = None,
    ) -> None:
        if fetch_timeout is None:
            fetch_timeout = resolve_fetch_timeout()
        self.context = BranchContext(source, IndexBuilder(source, fetch_timeout=fetch_timeout))
        self.query = SearchQuery()

    async def start(self) -> None:
        await self.context.load()

    async def select_branch(self, branch_id: str) -> bool:
        return await self.context.select_branch(branch_id)

    @property
    def branches(self) -> tuple[Branch, ...]:
        return self.context.branches

    @property
    def selected_branch(self) -> str | None:
        return self.context.current

    @property
    def index(self) -> AggregateIndex:
        return self.context.index

    def set_mode(self, mode: SearchMode | str) -> list[NormalizedDocument]:
        self.query = replace(self.query, mode=parse_search_mode(mode))
        return self.filtered_docs

    def set_text(self, text: str) -> list[NormalizedDocument]:
        self.query = replace(self.query, text=text)
        return self.filtered_docs

    def search(self, query: SearchQuery) -> list[NormalizedDocument]:
        """Filter the selected branch's index; empty until its rebuild lands."""
        if not self.context.is_current:
            return []
        return filter_documents(self.context.index, query)

    @property
    def filtered_docs(self) -> list[NormalizedDocument]:
        return self.search(self.query)

    def go_to_document(self, doc_type: DocType | str, doc_id: str) -> DocumentLink | None:
        return self.context.go_to_document(doc_type, doc_id)
