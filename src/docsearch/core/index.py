"""Build the aggregate index of all configuration documents on a branch."""

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from loguru import logger

from docsearch.core.connections import resolve_connections, resolve_url_map_entries
from docsearch.core.normalizer import normalize
from docsearch.models.document import AggregateIndex, DocType, NormalizedDocument
from docsearch.protocols import DocumentSourceProtocol

# Types that URL-map entries point at.
_REFERENCED_TYPES = frozenset({DocType.ACL_POLICIES, DocType.WAF_POLICIES, DocType.RATE_LIMITS})


def _resolve(
    doc: NormalizedDocument,
    entry_names: Mapping[tuple[DocType, str], tuple[str, ...]],
) -> NormalizedDocument:
    if doc.doc_type == DocType.URL_MAPS:
        connections = resolve_connections(doc.raw)
        return replace(
            doc,
            connected_acl=connections.acl,
            connected_waf=connections.waf,
            connected_rate_limits=connections.rate_limits,
        )
    if doc.doc_type in _REFERENCED_TYPES:
        names = entry_names.get((doc.doc_type, doc.id), ())
        if names:
            return replace(doc, connected_url_map_entries=names)
    return doc


def build_index(
    branch: str | None,
    raw_by_type: Mapping[DocType, Sequence[Any]],
) -> AggregateIndex:
    """Normalize, connect and concatenate raw documents in DocType order.

    Types missing from ``raw_by_type`` contribute nothing.
    """
    entry_names = resolve_url_map_entries(raw_by_type.get(DocType.URL_MAPS, ()))
    documents: list[NormalizedDocument] = []
    for doc_type in DocType:
        for raw in raw_by_type.get(doc_type, ()):
            documents.append(_resolve(normalize(raw, doc_type), entry_names))
    return AggregateIndex(branch=branch, documents=tuple(documents))


class IndexBuilder:
    """Fetch every document type of a branch concurrently and index the result.

    A fetch that fails, times out, or returns something other than a list
    contributes an empty collection; the other types are unaffected.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol,
        *,
        fetch_timeout: float | None = None,
    ) -> None:
        self._source = source
        self._fetch_timeout = fetch_timeout

    async def _fetch(self, branch: str, doc_type: DocType) -> Any:
        call = asyncio.to_thread(self._source.fetch_documents, branch, doc_type.value)
        if self._fetch_timeout is None:
            return await call
        return await asyncio.wait_for(call, self._fetch_timeout)

    async def fetch_all(self, branch: str) -> dict[DocType, list[Any]]:
        """Fetch all six document types; failed types map to an empty list."""
        doc_types = list(DocType)
        results = await asyncio.gather(
            *(self._fetch(branch, doc_type) for doc_type in doc_types),
            return_exceptions=True,
        )

        raw_by_type: dict[DocType, list[Any]] = {}
        for doc_type, result in zip(doc_types, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.TimeoutError):
                    reason = f"no response after {self._fetch_timeout}s"
                else:
                    reason = str(result) or type(result).__name__
                logger.warning(f"Failed to fetch {doc_type} on branch {branch!r}: {reason}")
                raw_by_type[doc_type] = []
            elif not isinstance(result, list):
                logger.warning(
                    f"Unexpected {doc_type} payload on branch {branch!r}: "
                    f"{type(result).__name__}, treating as empty"
                )
                raw_by_type[doc_type] = []
            else:
                raw_by_type[doc_type] = result
        return raw_by_type

    async def rebuild(self, branch: str) -> AggregateIndex:
        """Return a fresh index of ``branch``. Never raises for fetch failures."""
        raw_by_type = await self.fetch_all(branch)
        index = build_index(branch, raw_by_type)
        logger.debug(
            f"Indexed {len(index)} documents on branch {branch!r}: "
            + ", ".join(f"{t.value}={n}" for t, n in index.count_by_type().items())
        )
        return index
