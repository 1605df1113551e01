"""Service layer for team-related operations.

Privileged operations read the authoritative record (team leader, subject
user) inside a Firestore transaction and queue their writes on the same
transaction, so the check and the commit cannot interleave with another
client's commit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from teambuilder.core.constants import (
    INVITATIONS_COLLECTION,
    REQUESTS_COLLECTION,
    TEAMS_COLLECTION,
    USERS_COLLECTION,
)
from teambuilder.errors import (
    ForbiddenError,
    NotFoundError,
    PreconditionError,
    UnauthorizedError,
)
from teambuilder.skills.services import SkillService
from teambuilder.store import (
    apply_writes,
    find_documents,
    find_ids,
    get_document,
    get_documents,
)

from .models import (
    create_team_writes,
    delete_team_writes,
    remove_member_writes,
    update_team_writes,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


def pending_items_for_user(
    db: Client, transaction: Transaction, user_id: str
) -> tuple[list[str], list[str]]:
    """Ids of the join requests and invitations still open for ``user_id``."""
    return (
        find_ids(db, REQUESTS_COLLECTION, transaction=transaction, userId=user_id),
        find_ids(db, INVITATIONS_COLLECTION, transaction=transaction, userId=user_id),
    )


def read_team_as_leader(
    db: Client, transaction: Transaction, team_id: str, user_id: str
) -> dict[str, Any]:
    """Read a team inside ``transaction`` and check ``user_id`` leads it."""
    team = get_document(db, TEAMS_COLLECTION, team_id, transaction=transaction)
    if team is None:
        raise NotFoundError("Team not found.")
    if team.get("leaderId") != user_id:
        raise ForbiddenError()
    return team


@firestore.transactional
def _create_team_transaction(
    transaction: Transaction,
    db: Client,
    user_id: str,
    team_id: str,
    fields: dict[str, Any],
) -> None:
    user = get_document(db, USERS_COLLECTION, user_id, transaction=transaction)
    if user is None:
        raise PreconditionError("Please complete your profile first.")
    if user.get("teamId"):
        raise PreconditionError("You are already on a team.")
    stale_ids = pending_items_for_user(db, transaction, user_id)
    apply_writes(
        db, transaction, create_team_writes(team_id, user_id, fields, *stale_ids)
    )


@firestore.transactional
def _update_team_transaction(
    transaction: Transaction,
    db: Client,
    user_id: str,
    team_id: str,
    fields: dict[str, Any],
) -> None:
    team = read_team_as_leader(db, transaction, team_id, user_id)
    apply_writes(db, transaction, update_team_writes(team_id, fields, team))


@firestore.transactional
def _delete_team_transaction(
    transaction: Transaction,
    db: Client,
    user_id: str,
    team_id: str,
) -> list[str]:
    team = read_team_as_leader(db, transaction, team_id, user_id)
    request_ids = find_ids(
        db, REQUESTS_COLLECTION, transaction=transaction, teamId=team_id
    )
    invitation_ids = find_ids(
        db, INVITATIONS_COLLECTION, transaction=transaction, teamId=team_id
    )
    member_ids = list(team.get("members") or {})
    released = []
    for member_id in member_ids:
        member = get_document(db, USERS_COLLECTION, member_id, transaction=transaction)
        if member is not None and member.get("teamId") == team_id:
            released.append(member_id)
    apply_writes(
        db,
        transaction,
        delete_team_writes(team_id, released, request_ids, invitation_ids),
    )
    return member_ids


@firestore.transactional
def _remove_member_transaction(
    transaction: Transaction,
    db: Client,
    user_id: str,
    team_id: str,
    member_id: str,
) -> None:
    team = read_team_as_leader(db, transaction, team_id, user_id)
    if member_id == team.get("leaderId"):
        raise ForbiddenError("The team leader cannot be removed.")
    if member_id not in (team.get("members") or {}):
        raise PreconditionError("That user is not a member of this team.")

    member = get_document(db, USERS_COLLECTION, member_id, transaction=transaction)
    clear_profile = member is not None and member.get("teamId") == team_id
    apply_writes(
        db, transaction, remove_member_writes(team_id, member_id, clear_profile)
    )


class TeamService:
    """Service class for team-related operations."""

    @staticmethod
    def create_team(db: Client, user_id: str | None, fields: dict[str, Any]) -> str:
        """Create a team led by ``user_id`` and return its id."""
        if not user_id:
            raise UnauthorizedError()

        team_id = db.collection(TEAMS_COLLECTION).document().id
        _create_team_transaction(db.transaction(), db, user_id, team_id, fields)
        logger.info("User %s created team %s", user_id, team_id)

        if fields.get("appeal"):
            SkillService.register_skills(db, fields["appeal"]["requiredSkills"])
        return team_id

    @staticmethod
    def update_team(
        db: Client, team_id: str, user_id: str | None, fields: dict[str, Any]
    ) -> None:
        """Update a team's editable fields; only its leader may do this."""
        if not user_id:
            raise UnauthorizedError()
        _update_team_transaction(db.transaction(), db, user_id, team_id, fields)

        if fields.get("appeal"):
            SkillService.register_skills(db, fields["appeal"]["requiredSkills"])

    @staticmethod
    def delete_team(db: Client, team_id: str, user_id: str | None) -> list[str]:
        """Disband a team and return the ids of its former members."""
        if not user_id:
            raise UnauthorizedError()

        former_members = _delete_team_transaction(
            db.transaction(), db, user_id, team_id
        )
        logger.info(
            "Team %s disbanded by %s (%d members released)",
            team_id,
            user_id,
            len(former_members),
        )
        return former_members

    @staticmethod
    def remove_member(
        db: Client, team_id: str, user_id: str | None, member_id: str
    ) -> None:
        """Remove ``member_id`` from the team led by ``user_id``."""
        if not user_id:
            raise UnauthorizedError()
        _remove_member_transaction(
            db.transaction(), db, user_id, team_id, member_id
        )

    @staticmethod
    def get_team(db: Client, team_id: str) -> dict[str, Any]:
        team = get_document(db, TEAMS_COLLECTION, team_id)
        if team is None:
            raise NotFoundError("Team not found.")
        return team

    @staticmethod
    def list_teams(db: Client, recruiting_only: bool = False) -> list[dict[str, Any]]:
        """Fetch all teams, optionally only those recruiting."""
        if recruiting_only:
            teams = find_documents(db, TEAMS_COLLECTION, isRecruiting=True)
        else:
            teams = find_documents(db, TEAMS_COLLECTION)
        return sorted(teams, key=lambda team: team.get("name", "").lower())

    @staticmethod
    def get_team_members(db: Client, team: dict[str, Any]) -> list[dict[str, Any]]:
        """Fetch member profiles, leader first."""
        member_ids = list(team.get("members") or {})
        members = get_documents(db, USERS_COLLECTION, member_ids)
        leader_id = team.get("leaderId")
        return sorted(
            members.values(),
            key=lambda m: (m["id"] != leader_id, m.get("fullName", "").lower()),
        )

    @staticmethod
    def get_team_dashboard_data(
        db: Client, team_id: str, user_id: str | None = None
    ) -> dict[str, Any]:
        """Fetch a team with its members and, for the leader, pending items."""
        team = TeamService.get_team(db, team_id)
        data: dict[str, Any] = {
            "team": team,
            "members": TeamService.get_team_members(db, team),
            "isLeader": user_id is not None and team.get("leaderId") == user_id,
        }
        if data["isLeader"]:
            data["requests"] = find_documents(db, REQUESTS_COLLECTION, teamId=team_id)
            data["invitations"] = find_documents(
                db, INVITATIONS_COLLECTION, teamId=team_id
            )
        return data
