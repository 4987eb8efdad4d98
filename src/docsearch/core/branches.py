"""Active branch selection and index lifecycle."""

import asyncio
from typing import Any

from loguru import logger

from docsearch.core.index import IndexBuilder
from docsearch.models.document import AggregateIndex, Branch, DocType, DocumentLink
from docsearch.protocols import DocumentSourceProtocol


def _parse_branches(payload: Any) -> tuple[Branch, ...]:
    if not isinstance(payload, list):
        msg = f"branch listing is not a list: {type(payload).__name__}"
        raise TypeError(msg)
    branches: list[Branch] = []
    for item in payload:
        if not isinstance(item, dict) or not isinstance(item.get("id"), str):
            logger.debug(f"Skipping malformed branch entry: {item!r}")
            continue
        branches.append(
            Branch(
                id=item["id"],
                version=str(item.get("version", "")),
                description=str(item.get("description", "")),
                date=str(item.get("date", "")),
            )
        )
    return tuple(branches)


class BranchContext:
    """Holds the known branches, the current branch and its index.

    Every rebuild is tagged with a generation number; a rebuild whose
    generation is no longer the latest when it resolves is discarded, so a
    slow response for a superseded branch never overwrites a newer one.
    """

    def __init__(self, source: DocumentSourceProtocol, builder: IndexBuilder) -> None:
        self._source = source
        self._builder = builder
        self.branches: tuple[Branch, ...] = ()
        self.current: str | None = None
        self.index = AggregateIndex()
        self._generation = 0

    async def load(self) -> None:
        """Fetch the branch listing and select the first branch if none is set."""
        try:
            payload = await asyncio.to_thread(self._source.list_branches)
            self.branches = _parse_branches(payload)
        except Exception as exc:
            logger.error(f"Error while attempting to get configs: {exc}")
            self.branches = ()

        logger.debug(f"Known branches: {[b.id for b in self.branches]!r}")
        if self.current is None and self.branches:
            await self.select_branch(self.branches[0].id)

    @property
    def is_current(self) -> bool:
        """False while the index still holds a previously selected branch."""
        return self.index.branch == self.current

    def get_branch(self, branch_id: str) -> Branch | None:
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None

    async def select_branch(self, branch_id: str) -> bool:
        """Make ``branch_id`` current and rebuild its index.

        Returns:
            True if the rebuilt index was installed, False if the branch is
            unknown or the rebuild was superseded by a later selection.
        """
        if self.get_branch(branch_id) is None:
            logger.warning(f"Ignoring selection of unknown branch {branch_id!r}")
            return False

        self.current = branch_id
        return await self._rebuild(branch_id)

    async def refresh(self) -> bool:
        """Rebuild the index of the current branch."""
        if self.current is None:
            return False
        return await self._rebuild(self.current)

    async def _rebuild(self, branch_id: str) -> bool:
        self._generation += 1
        generation = self._generation

        index = await self._builder.rebuild(branch_id)

        if generation != self._generation or branch_id != self.current:
            logger.debug(
                f"Discarding stale index for branch {branch_id!r} "
                f"(generation {generation}, latest {self._generation})"
            )
            return False
        self.index = index
        return True

    def go_to_document(self, doc_type: DocType | str, doc_id: str) -> DocumentLink | None:
        """Return the edit-view target of a document in the installed index.

        The link names the branch the index was built from, which lags behind
        ``current`` while a branch switch is still rebuilding.
        """
        branch = self.index.branch
        if branch is None:
            return None
        try:
            target_type = DocType(doc_type)
        except ValueError:
            logger.warning(f"Ignoring link to unknown document type {doc_type!r}")
            return None
        return DocumentLink(branch=branch, doc_type=target_type, doc_id=doc_id)
