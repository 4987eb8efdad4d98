"""Convert raw per-type documents into NormalizedDocument records."""

from collections.abc import Mapping
from typing import Any, NamedTuple

from docsearch.models.document import DocType, NormalizedDocument


class _FieldMap(NamedTuple):
    description: str | None
    tags: tuple[str, ...]


# Each document type names its "description" and tag lists differently.
FIELD_MAP: dict[DocType, _FieldMap] = {
    DocType.ACL_POLICIES: _FieldMap(
        None, ("allow", "allow_bot", "deny_bot", "bypass", "deny", "force_deny")
    ),
    DocType.TAG_RULES: _FieldMap("notes", ("tags",)),
    DocType.URL_MAPS: _FieldMap(None, ()),
    DocType.FLOW_CONTROL: _FieldMap("notes", ("include", "exclude")),
    DocType.RATE_LIMITS: _FieldMap("description", ()),
    DocType.WAF_POLICIES: _FieldMap(None, ()),
}


def _text(raw: Mapping[str, Any], key: str | None) -> str:
    if key is None:
        return ""
    value = raw.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _tags(raw: Mapping[str, Any], keys: tuple[str, ...]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for key in keys:
        values = raw.get(key)
        if not isinstance(values, list):
            continue
        for value in values:
            if isinstance(value, str) and value:
                seen.setdefault(value, None)
    return tuple(seen)


def normalize(raw: Any, doc_type: DocType) -> NormalizedDocument:
    """Build the searchable record for one raw document.

    Never raises: missing or malformed fields become empty strings/tuples,
    and a non-mapping document gives an empty record. ``raw`` is kept as
    received either way. Connections are left empty; they are filled in by
    the index builder.
    """
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    fields = FIELD_MAP[doc_type]
    return NormalizedDocument(
        id=_text(data, "id"),
        doc_type=doc_type,
        name=_text(data, "name"),
        description=_text(data, fields.description),
        tags=_tags(data, fields.tags),
        raw=raw,
    )
