"""Protocols for dependency injection in the document index."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DocumentSourceProtocol(Protocol):
    """Protocol for configuration backend clients."""

    def list_branches(self) -> Any:
        """Return the decoded branch listing (a list of branch objects)."""
        ...

    def fetch_documents(self, branch: str, doc_type: str) -> Any:
        """Return the decoded list of raw documents of one type on a branch."""
        ...
