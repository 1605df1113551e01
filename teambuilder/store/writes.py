"""Path-addressed writes applied to Firestore in a single commit.

Every state transition in the application is described as a list of
``Write`` records. A path has the shape ``collection/document[/field...]``:

* ``teams/abc`` addresses the whole team document,
* ``teams/abc/members/u1`` addresses the nested field ``members.u1``.

A value of ``None`` deletes the addressed document or field. The list is
queued onto a transaction or write batch by ``apply_writes`` and becomes
visible all at once when the caller commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from teambuilder.core.constants import FIRESTORE_BATCH_LIMIT

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


@dataclass(frozen=True)
class Write:
    """A single path to value assignment."""

    path: str
    value: Any = None

    @property
    def segments(self) -> list[str]:
        return [part for part in self.path.strip("/").split("/") if part]

    @property
    def document_key(self) -> tuple[str, str]:
        segments = self.segments
        if len(segments) < 2:
            raise ValueError(f"Write path must address a document: {self.path!r}")
        return segments[0], segments[1]

    @property
    def field_path(self) -> str | None:
        fields = self.segments[2:]
        return ".".join(fields) if fields else None


def path(*parts: str) -> str:
    """Join path segments, rejecting ones that would break addressing."""
    for part in parts:
        if not part or "/" in part or "." in part:
            raise ValueError(f"Invalid path segment: {part!r}")
    return "/".join(parts)


def group_writes(writes: list[Write]) -> dict[tuple[str, str], dict[str, Any]]:
    """Group writes per document.

    Returns a mapping of ``(collection, document_id)`` to either
    ``{"document": value}`` for whole-document writes or
    ``{"fields": {field_path: value}}`` for field writes. Mixing both kinds
    on one document, or writing the same path twice, is rejected.
    """
    grouped: dict[tuple[str, str], dict[str, Any]] = {}
    for write in writes:
        key = write.document_key
        field = write.field_path
        entry = grouped.setdefault(key, {})

        if field is None:
            if entry:
                raise ValueError(f"Conflicting writes for document {'/'.join(key)}")
            entry["document"] = write.value
            continue

        if "document" in entry:
            raise ValueError(f"Conflicting writes for document {'/'.join(key)}")
        fields = entry.setdefault("fields", {})
        if field in fields:
            raise ValueError(f"Duplicate write for path {write.path!r}")
        fields[field] = write.value
    return grouped


def apply_writes(db: Client, writer: Any, writes: list[Write]) -> int:
    """Queue ``writes`` onto a transaction or write batch.

    Returns the number of document operations queued. The caller owns the
    commit (transactions commit when the transactional function returns).
    """
    grouped = group_writes(writes)
    if len(grouped) > FIRESTORE_BATCH_LIMIT:
        raise ValueError(
            f"Too many document writes for one commit: {len(grouped)}"
        )

    for (collection, document_id), entry in grouped.items():
        ref = db.collection(collection).document(document_id)
        if "document" in entry:
            if entry["document"] is None:
                writer.delete(ref)
            else:
                writer.set(ref, entry["document"])
        else:
            writer.update(
                ref,
                {
                    field: firestore.DELETE_FIELD if value is None else value
                    for field, value in entry["fields"].items()
                },
            )
    return len(grouped)


def commit_writes(db: Client, writes: list[Write]) -> None:
    """Apply ``writes`` through a fresh write batch and commit it."""
    if not writes:
        return
    batch = db.batch()
    apply_writes(db, batch, writes)
    batch.commit()
