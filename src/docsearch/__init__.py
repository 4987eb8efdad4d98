"""Search and cross-reference tools for security configuration documents."""

from docsearch.api import ConfApi, FetchError
from docsearch.core.document_search import DocumentSearch
from docsearch.protocols import DocumentSourceProtocol

__all__ = ["ConfApi", "DocumentSearch", "DocumentSourceProtocol", "FetchError"]
