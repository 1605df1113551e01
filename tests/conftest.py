"""Common utilities for tests."""

from __future__ import annotations

import unittest.mock
from typing import Any, Optional

from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference


class MockBatch:
    """Write batch that applies queued operations in order on commit."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.operations: list[tuple[str, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.operations.append(("set", ref, data))

    def update(self, ref: Any, data: Any) -> None:
        self.operations.append(("update", ref, data))

    def delete(self, ref: Any) -> None:
        self.operations.append(("delete", ref, None))

    def _real_commit(self) -> None:
        operations, self.operations = self.operations, []
        for kind, ref, data in operations:
            if kind == "set":
                ref.set(data)
            elif kind == "update":
                ref.update(data)
            else:
                ref.delete()


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and transactions."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

    # Patch DocumentReference.get to handle transaction argument
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_ref_get(self: Any, transaction: Any = None) -> Any:
            """Handle transaction argument in get."""
            return self._orig_get()

        DocumentReference.get = doc_ref_get


def make_db() -> MockFirestore:
    """A patched MockFirestore whose ``batch()`` returns a MockBatch."""
    patch_mockfirestore()
    db = MockFirestore()
    db.batch = lambda: MockBatch(db)
    return db


def seed_user(db: Any, user_id: str, team_id: Optional[str] = None, **fields: Any) -> None:
    data = {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "fullName": fields.pop("fullName", user_id.capitalize()),
        "avatarUrl": None,
        "year": "2nd Year",
        "bio": "Hacker",
        "skills": ["Python"],
        "teamId": team_id,
    }
    data.update(fields)
    db.collection("users").document(user_id).set(data)


def seed_team(
    db: Any, team_id: str, leader_id: str, members: Optional[list[str]] = None, **fields: Any
) -> None:
    """Store a team and point each member's profile at it."""
    member_ids = [leader_id] + [m for m in (members or []) if m != leader_id]
    data = {
        "name": fields.pop("name", team_id.capitalize()),
        "projectIdea": "Build things",
        "leaderId": leader_id,
        "members": {member_id: True for member_id in member_ids},
        "isRecruiting": False,
    }
    data.update(fields)
    db.collection("teams").document(team_id).set(data)
    for member_id in member_ids:
        db.collection("users").document(member_id).update({"teamId": team_id})
