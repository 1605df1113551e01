"""Read helpers shared by the service layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from teambuilder.utils import snapshot_to_dict

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def where_equal(db: Client, collection: str, **filters: Any) -> Any:
    """Build a query matching every ``field == value`` pair."""
    query: Any = db.collection(collection)
    for field, value in filters.items():
        query = query.where(filter=firestore.FieldFilter(field, "==", value))
    return query


def find_documents(
    db: Client, collection: str, transaction: Any = None, **filters: Any
) -> list[dict[str, Any]]:
    """Fetch every document of ``collection`` matching the filters.

    With ``transaction`` the query is read inside it, so the result is
    checked again when the transaction commits.
    """
    query = where_equal(db, collection, **filters) if filters else db.collection(collection)
    results = []
    for doc in query.stream(transaction=transaction):
        data = snapshot_to_dict(doc)
        if data is not None:
            results.append(data)
    return results


def find_ids(
    db: Client, collection: str, transaction: Any = None, **filters: Any
) -> list[str]:
    return [
        doc["id"]
        for doc in find_documents(db, collection, transaction=transaction, **filters)
    ]


def get_document(
    db: Client, collection: str, document_id: str, transaction: Any = None
) -> dict[str, Any] | None:
    """Read one document, inside ``transaction`` when given."""
    ref = db.collection(collection).document(document_id)
    if transaction is not None:
        return snapshot_to_dict(ref.get(transaction=transaction))
    return snapshot_to_dict(ref.get())


def get_documents(
    db: Client, collection: str, document_ids: list[str]
) -> dict[str, dict[str, Any]]:
    """Batch fetch documents by id, skipping missing ones."""
    if not document_ids:
        return {}
    refs = [db.collection(collection).document(doc_id) for doc_id in document_ids]
    results = {}
    for snapshot in db.get_all(refs):
        data = snapshot_to_dict(snapshot)
        if data is not None:
            results[data["id"]] = data
    return results
