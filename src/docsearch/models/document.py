"""Domain models for the configuration document index."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class DocType(StrEnum):
    """Configuration document types, in fetch and merge order."""

    ACL_POLICIES = "aclpolicies"
    TAG_RULES = "tagrules"
    URL_MAPS = "urlmaps"
    FLOW_CONTROL = "flowcontrol"
    RATE_LIMITS = "ratelimits"
    WAF_POLICIES = "wafpolicies"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[DocType, str] = {
    DocType.ACL_POLICIES: "ACL Policies",
    DocType.TAG_RULES: "Tag Rules",
    DocType.URL_MAPS: "URL Maps",
    DocType.FLOW_CONTROL: "Flow Control",
    DocType.RATE_LIMITS: "Rate Limits",
    DocType.WAF_POLICIES: "WAF Policies",
}


class SearchMode(StrEnum):
    """Facet selection for a search query."""

    ALL = "all"
    TYPE = "type"
    ID = "id"
    NAME = "name"
    DESCRIPTION = "description"
    TAGS = "tags"
    CONNECTIONS = "connections"


@dataclass(frozen=True)
class Branch:
    """A configuration branch as returned by the branch listing."""

    id: str
    version: str
    description: str = ""
    date: str = ""


@dataclass(frozen=True)
class Connections:
    """Policies referenced by a URL map, deduplicated in first-seen order."""

    acl: tuple[str, ...] = ()
    waf: tuple[str, ...] = ()
    rate_limits: tuple[str, ...] = ()


@dataclass(frozen=True)
class NormalizedDocument:
    """A single configuration document in uniform, searchable shape."""

    id: str
    doc_type: DocType
    name: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()
    connected_acl: tuple[str, ...] = ()
    connected_waf: tuple[str, ...] = ()
    connected_rate_limits: tuple[str, ...] = ()
    connected_url_map_entries: tuple[str, ...] = ()
    raw: Any = field(default_factory=dict, repr=False, hash=False)

    @property
    def connection_ids(self) -> tuple[str, ...]:
        """All connection values, forward references first."""
        return (
            self.connected_acl
            + self.connected_waf
            + self.connected_rate_limits
            + self.connected_url_map_entries
        )


@dataclass(frozen=True)
class AggregateIndex:
    """All normalized documents of one branch, in fixed type order."""

    branch: str | None = None
    documents: tuple[NormalizedDocument, ...] = ()

    def __iter__(self) -> Iterator[NormalizedDocument]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    def count_by_type(self) -> dict[DocType, int]:
        counts = dict.fromkeys(DocType, 0)
        for doc in self.documents:
            counts[doc.doc_type] += 1
        return counts

    def find(self, doc_type: DocType, doc_id: str) -> NormalizedDocument | None:
        for doc in self.documents:
            if doc.doc_type == doc_type and doc.id == doc_id:
                return doc
        return None


@dataclass(frozen=True)
class SearchQuery:
    """Search mode plus case-insensitive substring text."""

    mode: SearchMode = SearchMode.ALL
    text: str = ""


@dataclass(frozen=True)
class DocumentLink:
    """Navigation target for a document's edit view."""

    branch: str
    doc_type: DocType
    doc_id: str

    @property
    def path(self) -> str:
        return f"/config/{self.branch}/{self.doc_type.value}/{self.doc_id}"
