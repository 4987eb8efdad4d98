"""Faceted substring search over the aggregate index."""

from collections.abc import Callable, Iterable

from docsearch.models.document import NormalizedDocument, SearchMode, SearchQuery


def _type_facet(doc: NormalizedDocument) -> tuple[str, ...]:
    return (doc.doc_type.value, doc.doc_type.label)


def _id_facet(doc: NormalizedDocument) -> tuple[str, ...]:
    return (doc.id,)


def _name_facet(doc: NormalizedDocument) -> tuple[str, ...]:
    return (doc.name,)


def _description_facet(doc: NormalizedDocument) -> tuple[str, ...]:
    return (doc.description,)


def _tags_facet(doc: NormalizedDocument) -> tuple[str, ...]:
    return doc.tags


def _connections_facet(doc: NormalizedDocument) -> tuple[str, ...]:
    return doc.connection_ids


_FACETS: dict[SearchMode, Callable[[NormalizedDocument], tuple[str, ...]]] = {
    SearchMode.TYPE: _type_facet,
    SearchMode.ID: _id_facet,
    SearchMode.NAME: _name_facet,
    SearchMode.DESCRIPTION: _description_facet,
    SearchMode.TAGS: _tags_facet,
    SearchMode.CONNECTIONS: _connections_facet,
}


def _facet_values(doc: NormalizedDocument, mode: SearchMode) -> tuple[str, ...]:
    if mode == SearchMode.ALL:
        # Union of every facet, connections included even where always empty.
        return tuple(value for facet in _FACETS.values() for value in facet(doc))
    return _FACETS[mode](doc)


def parse_search_mode(value: str | SearchMode) -> SearchMode:
    """Parse a mode name, case-insensitively.

    Raises:
        ValueError: If ``value`` names no search mode.
    """
    try:
        return SearchMode(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(m.value for m in SearchMode)
        msg = f"Unknown search mode {value!r}, expected one of: {valid}"
        raise ValueError(msg) from None


def matches(doc: NormalizedDocument, query: SearchQuery) -> bool:
    """Return True if any value of the query's facet contains its text."""
    needle = query.text.lower()
    if not needle:
        return True
    return any(needle in value.lower() for value in _facet_values(doc, query.mode))


def filter_documents(
    documents: Iterable[NormalizedDocument],
    query: SearchQuery,
) -> list[NormalizedDocument]:
    """Stable filter: matching documents in their index order."""
    return [doc for doc in documents if matches(doc, query)]
