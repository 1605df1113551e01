"""Store access helpers shared by the service layer."""

from .queries import find_documents, find_ids, get_document, get_documents
from .writes import Write, apply_writes, commit_writes, path

__all__ = [
    "Write",
    "apply_writes",
    "commit_writes",
    "find_documents",
    "find_ids",
    "get_document",
    "get_documents",
    "path",
]
