"""Shared test fixtures."""

import asyncio
from collections.abc import Iterator
from typing import Any

import pytest
from loguru import logger

from docsearch.core.document_search import DocumentSearch
from docsearch.core.index import build_index
from docsearch.models.document import AggregateIndex, DocType
from tests.unit.fakes import FakeSource

BRANCHES: list[dict[str, Any]] = [
    {
        "id": "master",
        "description": "Update entry [__default__] of document [aclpolicies]",
        "date": "2020-11-10T15:49:17+02:00",
        "logs": [
            {
                "version": "7dd9580c00bef1049ee9a531afb13db9ef3ee956",
                "date": "2020-11-10T15:49:17+02:00",
                "parents": ["fc47a6cd9d7f254dd97875a04b87165cc484e075"],
                "message": "Update entry [__default__] of document [aclpolicies]",
                "email": "curiefense@reblaze.com",
                "author": "Curiefense API",
            },
        ],
        "version": "7dd9580c00bef1049ee9a531afb13db9ef3ee956",
    },
    {
        "id": "zzz_branch",
        "description": "Initial empty content",
        "date": "2020-08-27T16:19:06+00:00",
        "logs": [],
        "version": "a34f979217215060861b58b3f270e82580c20efb",
    },
]

ACL_DOCS: list[dict[str, Any]] = [
    {
        "id": "__default__",
        "name": "default-acl",
        "allow": [],
        "allow_bot": ["google"],
        "deny_bot": [],
        "bypass": ["internal"],
        "deny": ["tor"],
        "force_deny": ["china"],
    },
    {
        "id": "5828321c37e0",
        "name": "an ACL",
        "allow": [],
        "allow_bot": ["google", "yahoo"],
        "deny_bot": [],
        "bypass": ["devops"],
        "deny": ["tor"],
        "force_deny": ["iran"],
    },
]

TAG_RULE_DOCS: list[dict[str, Any]] = [
    {
        "id": "xlbp148c",
        "name": "API Discovery",
        "source": "self-managed",
        "mdate": "2020-05-23T00:04:41",
        "notes": "Default Tag API Requests",
        "active": True,
        "tags": ["api"],
        "action": {"type": "monitor", "params": {}},
        "rule": {
            "relation": "OR",
            "sections": [
                {
                    "relation": "OR",
                    "entries": [
                        ["headers", ["content-type", ".*/(json|xml)"], "content type"],
                        ["method", "(POST|PUT|DELETE|PATCH)", "Methods"],
                        ["path", "/api/", "api path"],
                    ],
                },
            ],
        },
    },
    {
        "id": "07656fbe",
        "name": "devop internal demo",
        "source": "self-managed",
        "mdate": "2020-05-23T00:04:41",
        "notes": "this is my own list",
        "active": False,
        "tags": ["internal", "devops"],
        "action": {"type": "monitor", "params": {}},
        "rule": {
            "relation": "OR",
            "sections": [
                {"relation": "OR", "entries": [["ip", "1.1.1.1", None]]},
                {"relation": "OR", "entries": [["ip", "2.2.2.2", None]]},
            ],
        },
    },
]

URL_MAP_DOCS: list[dict[str, Any]] = [
    {
        "id": "__default__",
        "name": "default entry",
        "match": "__default__",
        "map": [
            {
                "name": "default",
                "match": "/",
                "acl_profile": "5828321c37e0",
                "acl_active": False,
                "waf_profile": "__default__",
                "waf_active": False,
                "limit_ids": ["f971e92459e2"],
            },
            {
                "name": "name",
                "match": "/foo",
                "acl_profile": "__default__",
                "acl_active": False,
                "waf_profile": "__default__",
                "waf_active": False,
                "limit_ids": ["f971e92459e2"],
            },
            {
                "name": "name",
                "match": "/foo",
                "acl_profile": "__default__",
                "acl_active": False,
                "waf_profile": "__default__",
                "waf_active": False,
                "limit_ids": ["f971e92459e2"],
            },
        ],
    },
]

FLOW_CONTROL_DOCS: list[dict[str, Any]] = [
    {
        "active": True,
        "notes": "",
        "exclude": [],
        "include": ["all"],
        "name": "flow control",
        "key": [{"headers": "something"}],
        "sequence": [
            {"method": "GET", "uri": "/login", "cookies": {"foo": "bar"}, "headers": {}, "args": {}},
            {
                "method": "POST",
                "uri": "/login",
                "cookies": {"foo": "bar"},
                "headers": {"test": "one"},
                "args": {},
            },
        ],
        "action": {"type": "default", "params": {}},
        "ttl": 60,
        "id": "c03dabe4b9ca",
    },
]

RATE_LIMIT_DOCS: list[dict[str, Any]] = [
    {
        "id": "f971e92459e2",
        "name": "Rate Limit Example Rule 5/60",
        "description": "5 requests per minute",
        "ttl": "60",
        "limit": "5",
        "action": {"type": "default"},
        "include": {"headers": {}, "cookies": {}, "args": {}, "attrs": {}},
        "exclude": {"headers": {}, "cookies": {}, "args": {}, "attrs": {}},
        "key": [{"attrs": "ip"}],
        "pairwith": {"self": "self"},
    },
]

WAF_DOCS: list[dict[str, Any]] = [
    {
        "id": "01b2abccc275",
        "name": "default waf",
        "ignore_alphanum": True,
        "max_header_length": 1024,
        "max_cookie_length": 1024,
        "max_arg_length": 1024,
        "max_headers_count": 42,
        "max_cookies_count": 42,
        "max_args_count": 512,
        "min_headers_risk": 1,
        "min_cookies_risk": 1,
        "min_args_risk": 1,
        "args": {"names": [], "regex": []},
        "headers": {"names": [], "regex": []},
        "cookies": {"names": [], "regex": []},
    },
]

DOCS_BY_TYPE: dict[DocType, list[dict[str, Any]]] = {
    DocType.ACL_POLICIES: ACL_DOCS,
    DocType.TAG_RULES: TAG_RULE_DOCS,
    DocType.URL_MAPS: URL_MAP_DOCS,
    DocType.FLOW_CONTROL: FLOW_CONTROL_DOCS,
    DocType.RATE_LIMITS: RATE_LIMIT_DOCS,
    DocType.WAF_POLICIES: WAF_DOCS,
}

# zzz_branch holds a single, differently named ACL so tests can tell branches apart.
ZZZ_ACL_DOCS: list[dict[str, Any]] = [
    {"id": "zzz-acl", "name": "zzz only", "allow": [], "deny": ["russia"]},
]


@pytest.fixture
def source() -> FakeSource:
    """Return a fake backend with the reference documents on master."""
    fake = FakeSource()
    fake.branches = BRANCHES
    for doc_type, docs in DOCS_BY_TYPE.items():
        fake.add_documents("master", doc_type.value, docs)
    fake.add_documents("zzz_branch", DocType.ACL_POLICIES.value, ZZZ_ACL_DOCS)
    return fake


@pytest.fixture
def index() -> AggregateIndex:
    """Return the aggregate index of the reference documents."""
    return build_index("master", DOCS_BY_TYPE)


@pytest.fixture
def session(source: FakeSource) -> DocumentSearch:
    """Return a started search session on master."""
    search = DocumentSearch(source)
    asyncio.run(search.start())
    return search


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
