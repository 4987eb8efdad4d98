"""Cross references between URL maps and the policies they use."""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from docsearch.models.document import Connections, DocType


class OrderedIdSet:
    """Insertion-ordered set of ids; later duplicates are dropped."""

    def __init__(self) -> None:
        self._order: list[str] = []
        self._seen: set[str] = set()

    def add(self, value: Any) -> None:
        """Add a non-empty string id if not present yet."""
        if not isinstance(value, str) or not value or value in self._seen:
            return
        self._seen.add(value)
        self._order.append(value)

    def __contains__(self, value: object) -> bool:
        return value in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self._order)


def _entries(url_map: Any) -> Iterator[Mapping[str, Any]]:
    """Yield the well-formed path entries of a URL map, in order."""
    if not isinstance(url_map, Mapping):
        return
    entries = url_map.get("map")
    if not isinstance(entries, list):
        return
    for entry in entries:
        if isinstance(entry, Mapping):
            yield entry


def _limit_ids(entry: Mapping[str, Any]) -> list[Any]:
    limit_ids = entry.get("limit_ids")
    return limit_ids if isinstance(limit_ids, list) else []


def resolve_connections(url_map: Any) -> Connections:
    """Collect the ACL, WAF and rate-limit ids referenced by a URL map.

    Entries are visited in order and the first reference to an id fixes its
    position. The ``acl_active``/``waf_active`` flags are ignored: an inactive
    profile is still referenced by the entry. Malformed entries contribute
    nothing.
    """
    acl = OrderedIdSet()
    waf = OrderedIdSet()
    rate_limits = OrderedIdSet()

    for entry in _entries(url_map):
        acl.add(entry.get("acl_profile"))
        waf.add(entry.get("waf_profile"))
        for limit_id in _limit_ids(entry):
            rate_limits.add(limit_id)

    return Connections(acl=acl.as_tuple(), waf=waf.as_tuple(), rate_limits=rate_limits.as_tuple())


def resolve_url_map_entries(
    url_maps: Iterable[Any],
) -> dict[tuple[DocType, str], tuple[str, ...]]:
    """Map each referenced policy to the names of the URL-map entries using it.

    Returns:
        ``{(doc_type, policy_id): (entry_name, ...)}`` for ACL, WAF and
        rate-limit policies. Entry names are deduplicated in first-seen order.
    """
    found: dict[tuple[DocType, str], OrderedIdSet] = {}

    def _record(doc_type: DocType, policy_id: Any, entry_name: str) -> None:
        if not isinstance(policy_id, str) or not policy_id:
            return
        found.setdefault((doc_type, policy_id), OrderedIdSet()).add(entry_name)

    for url_map in url_maps:
        for entry in _entries(url_map):
            entry_name = entry.get("name")
            if not isinstance(entry_name, str) or not entry_name:
                continue
            _record(DocType.ACL_POLICIES, entry.get("acl_profile"), entry_name)
            _record(DocType.WAF_POLICIES, entry.get("waf_profile"), entry_name)
            for limit_id in _limit_ids(entry):
                _record(DocType.RATE_LIMITS, limit_id, entry_name)

    return {key: names.as_tuple() for key, names in found.items()}
