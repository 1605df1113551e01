"""Service layer for team and community chat."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from teambuilder.core.constants import (
    COMMUNITY_MESSAGES_COLLECTION,
    MESSAGE_MAX_LENGTH,
    MESSAGES_COLLECTION,
    TEAMS_COLLECTION,
    USERS_COLLECTION,
)
from teambuilder.core.types import ChatMessage
from teambuilder.errors import (
    ForbiddenError,
    NotFoundError,
    PreconditionError,
    UnauthorizedError,
    ValidationError,
)
from teambuilder.store import (
    Write,
    commit_writes,
    find_documents,
    get_document,
    path,
)
from teambuilder.utils import timestamp_millis

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def serialize_message(message: dict[str, Any]) -> dict[str, Any]:
    """Return a JSON-safe copy with the timestamp in epoch milliseconds."""
    data = dict(message)
    data["timestamp"] = timestamp_millis(message.get("timestamp"))
    data["readBy"] = dict(message.get("readBy") or {})
    return data


def _sort_key(message: dict[str, Any]) -> tuple[bool, int, str]:
    millis = message.get("timestamp")
    # Messages still waiting for a server timestamp sort last.
    return (millis is None, millis or 0, message.get("id", ""))


class ChatService:
    """Send, read and delete messages in a team or the community channel."""

    @staticmethod
    def _collection(team_id: str | None) -> str:
        return MESSAGES_COLLECTION if team_id else COMMUNITY_MESSAGES_COLLECTION

    @staticmethod
    def check_team_member(db: Client, team_id: str, user_id: str) -> dict[str, Any]:
        team = get_document(db, TEAMS_COLLECTION, team_id)
        if team is None:
            raise NotFoundError("Team not found.")
        if user_id not in (team.get("members") or {}):
            raise ForbiddenError("Only team members can use the team chat.")
        return team

    @staticmethod
    def send_message(
        db: Client, user_id: str | None, text: str | None, team_id: str | None = None
    ) -> ChatMessage:
        """Post ``text`` to a team chat, or to the community chat if no team.

        The sender's name and avatar are copied onto the message and the
        sender is its only initial reader.
        """
        if not user_id:
            raise UnauthorizedError()
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty.")
        if len(text) > MESSAGE_MAX_LENGTH:
            raise ValidationError(
                f"Message cannot be longer than {MESSAGE_MAX_LENGTH} characters."
            )

        sender = get_document(db, USERS_COLLECTION, user_id)
        if sender is None:
            raise PreconditionError("Please complete your profile first.")
        if team_id:
            ChatService.check_team_member(db, team_id, user_id)

        collection = ChatService._collection(team_id)
        message_id = db.collection(collection).document().id
        message: ChatMessage = {
            "senderId": user_id,
            "senderName": sender.get("fullName", ""),
            "senderAvatar": sender.get("avatarUrl"),
            "text": text,
            "timestamp": firestore.SERVER_TIMESTAMP,
            "readBy": {user_id: True},
        }
        if team_id:
            message["teamId"] = team_id

        commit_writes(db, [Write(path(collection, message_id), dict(message))])
        message["id"] = message_id
        return message

    @staticmethod
    def mark_read(
        db: Client, user_id: str | None, message_id: str, community: bool = False
    ) -> bool:
        """Add ``user_id`` to the message's readers.

        Returns False without writing when no user is signed in.
        """
        if not user_id:
            return False
        collection = COMMUNITY_MESSAGES_COLLECTION if community else MESSAGES_COLLECTION
        message = get_document(db, collection, message_id)
        if message is None:
            raise NotFoundError("Message not found.")
        if (message.get("readBy") or {}).get(user_id):
            return True
        commit_writes(db, [Write(path(collection, message_id, "readBy", user_id), True)])
        return True

    @staticmethod
    def delete_message(
        db: Client, user_id: str | None, message_id: str, community: bool = False
    ) -> None:
        """Delete a message; only its sender may do this."""
        if not user_id:
            raise UnauthorizedError()
        collection = COMMUNITY_MESSAGES_COLLECTION if community else MESSAGES_COLLECTION
        message = get_document(db, collection, message_id)
        if message is None:
            raise NotFoundError("Message not found.")
        if message.get("senderId") != user_id:
            raise ForbiddenError("You can only delete your own messages.")
        commit_writes(db, [Write(path(collection, message_id))])
        logger.info("Message %s deleted from %s by %s", message_id, collection, user_id)

    @staticmethod
    def list_messages(
        db: Client, user_id: str | None, team_id: str | None = None
    ) -> list[dict[str, Any]]:
        """Messages of a team (members only) or of the community, oldest first."""
        if not user_id:
            raise UnauthorizedError()
        if team_id:
            ChatService.check_team_member(db, team_id, user_id)
            messages = find_documents(db, MESSAGES_COLLECTION, teamId=team_id)
        else:
            messages = find_documents(db, COMMUNITY_MESSAGES_COLLECTION)
        return sorted((serialize_message(m) for m in messages), key=_sort_key)
