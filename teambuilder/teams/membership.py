"""Join requests and invitations: the paths by which users enter a team."""

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
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    PreconditionError,
    UnauthorizedError,
)
from teambuilder.store import (
    Write,
    apply_writes,
    find_documents,
    find_ids,
    get_document,
    get_documents,
    path,
)

from .models import (
    SKIP_ALREADY_ON_TEAM,
    SKIP_TEAM_MISSING,
    SKIP_USER_MISSING,
    MembershipOutcome,
    grant_membership_writes,
)
from .services import pending_items_for_user, read_team_as_leader

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


def _without(ids: list[str], excluded: str) -> list[str]:
    return [item for item in ids if item != excluded]


@firestore.transactional
def _request_to_join_transaction(
    transaction: Transaction,
    db: Client,
    user_id: str,
    team_id: str,
    request_id: str,
) -> None:
    user = get_document(db, USERS_COLLECTION, user_id, transaction=transaction)
    if user is None:
        raise PreconditionError("Please complete your profile first.")
    if user.get("teamId"):
        raise PreconditionError("You are already on a team.")
    team = get_document(db, TEAMS_COLLECTION, team_id, transaction=transaction)
    if team is None:
        raise NotFoundError("Team not found.")

    apply_writes(
        db,
        transaction,
        [Write(path(REQUESTS_COLLECTION, request_id), {"userId": user_id, "teamId": team_id})],
    )


@firestore.transactional
def _invite_transaction(
    transaction: Transaction,
    db: Client,
    leader_id: str,
    user_id: str,
    team_id: str,
    invitation_id: str,
) -> None:
    read_team_as_leader(db, transaction, team_id, leader_id)
    invitee = get_document(db, USERS_COLLECTION, user_id, transaction=transaction)
    if invitee is None:
        raise NotFoundError("User not found.")
    if invitee.get("teamId"):
        raise PreconditionError("That user is already on a team.")

    apply_writes(
        db,
        transaction,
        [
            Write(
                path(INVITATIONS_COLLECTION, invitation_id),
                {"userId": user_id, "teamId": team_id},
            )
        ],
    )


@firestore.transactional
def _join_request_transaction(
    transaction: Transaction,
    db: Client,
    leader_id: str,
    request_id: str,
    accept: bool,
) -> MembershipOutcome:
    request = get_document(db, REQUESTS_COLLECTION, request_id, transaction=transaction)
    if request is None:
        raise NotFoundError("Invalid request.")
    team_id, user_id = request["teamId"], request["userId"]

    team = get_document(db, TEAMS_COLLECTION, team_id, transaction=transaction)
    if team is not None and team.get("leaderId") != leader_id:
        raise ForbiddenError()

    outcome = MembershipOutcome(team_id=team_id, user_id=user_id, accepted=accept)
    writes = [Write(path(REQUESTS_COLLECTION, request_id))]
    if accept:
        user = get_document(db, USERS_COLLECTION, user_id, transaction=transaction)
        if team is None:
            outcome.reason = SKIP_TEAM_MISSING
        elif user is None:
            outcome.reason = SKIP_USER_MISSING
        elif user.get("teamId"):
            outcome.reason = SKIP_ALREADY_ON_TEAM
        else:
            request_ids, invitation_ids = pending_items_for_user(
                db, transaction, user_id
            )
            writes += grant_membership_writes(
                team_id, user_id, _without(request_ids, request_id), invitation_ids
            )
            outcome.joined = True

    apply_writes(db, transaction, writes)
    return outcome


@firestore.transactional
def _invitation_transaction(
    transaction: Transaction,
    db: Client,
    user_id: str,
    invitation_id: str,
    accept: bool,
) -> MembershipOutcome:
    invitation = get_document(
        db, INVITATIONS_COLLECTION, invitation_id, transaction=transaction
    )
    if invitation is None:
        raise NotFoundError("Invalid invitation.")
    if invitation.get("userId") != user_id:
        raise ForbiddenError()
    team_id = invitation["teamId"]

    outcome = MembershipOutcome(team_id=team_id, user_id=user_id, accepted=accept)
    writes = [Write(path(INVITATIONS_COLLECTION, invitation_id))]
    if accept:
        user = get_document(db, USERS_COLLECTION, user_id, transaction=transaction)
        team = get_document(db, TEAMS_COLLECTION, team_id, transaction=transaction)
        if user is None:
            outcome.reason = SKIP_USER_MISSING
        elif user.get("teamId"):
            outcome.reason = SKIP_ALREADY_ON_TEAM
        elif team is None:
            outcome.reason = SKIP_TEAM_MISSING
        else:
            request_ids, invitation_ids = pending_items_for_user(
                db, transaction, user_id
            )
            writes += grant_membership_writes(
                team_id, user_id, request_ids, _without(invitation_ids, invitation_id)
            )
            outcome.joined = True

    apply_writes(db, transaction, writes)
    return outcome


def _log_outcome(kind: str, item_id: str, outcome: MembershipOutcome) -> None:
    if outcome.skipped:
        logger.warning(
            "Accepted %s %s but did not add user %s to team %s: %s",
            kind,
            item_id,
            outcome.user_id,
            outcome.team_id,
            outcome.reason,
        )
    else:
        logger.info(
            "%s %s for user %s and team %s %s",
            kind.capitalize(),
            item_id,
            outcome.user_id,
            outcome.team_id,
            "accepted" if outcome.accepted else "declined",
        )


class MembershipService:
    """Join requests, invitations and their resolution."""

    @staticmethod
    def request_to_join(db: Client, user_id: str | None, team_id: str) -> str:
        """Ask to join ``team_id``; the caller must not be on a team."""
        if not user_id:
            raise UnauthorizedError()
        if find_ids(db, REQUESTS_COLLECTION, userId=user_id, teamId=team_id):
            raise DuplicateResourceError("You have already requested to join this team.")

        request_id = db.collection(REQUESTS_COLLECTION).document().id
        _request_to_join_transaction(db.transaction(), db, user_id, team_id, request_id)
        return request_id

    @staticmethod
    def invite_to_team(
        db: Client, leader_id: str | None, user_id: str, team_id: str
    ) -> str:
        """Invite ``user_id`` to the team led by ``leader_id``."""
        if not leader_id:
            raise UnauthorizedError()
        if find_ids(db, INVITATIONS_COLLECTION, userId=user_id, teamId=team_id):
            raise DuplicateResourceError("An invitation has already been sent.")

        invitation_id = db.collection(INVITATIONS_COLLECTION).document().id
        _invite_transaction(
            db.transaction(), db, leader_id, user_id, team_id, invitation_id
        )
        return invitation_id

    @staticmethod
    def handle_join_request(
        db: Client, request_id: str, leader_id: str | None, accept: bool
    ) -> MembershipOutcome:
        """Accept or decline a join request as the team's leader.

        The request is always consumed. On accept, the requester joins only
        if they are still without a team when the transaction commits. Any
        signed-in caller may consume a request whose team no longer exists;
        accepting it reports ``team_missing``.
        """
        if not leader_id:
            raise UnauthorizedError()

        outcome = _join_request_transaction(
            db.transaction(), db, leader_id, request_id, accept
        )
        _log_outcome("request", request_id, outcome)
        return outcome

    @staticmethod
    def handle_invitation(
        db: Client, invitation_id: str, user_id: str | None, accept: bool
    ) -> MembershipOutcome:
        """Accept or decline an invitation addressed to ``user_id``."""
        if not user_id:
            raise UnauthorizedError()

        outcome = _invitation_transaction(
            db.transaction(), db, user_id, invitation_id, accept
        )
        _log_outcome("invitation", invitation_id, outcome)
        return outcome

    @staticmethod
    def list_team_requests(
        db: Client, team_id: str, leader_id: str | None
    ) -> list[dict[str, Any]]:
        """Pending join requests for a team, with requester profiles."""
        team = get_document(db, TEAMS_COLLECTION, team_id)
        if team is None:
            raise NotFoundError("Team not found.")
        if not leader_id or team.get("leaderId") != leader_id:
            raise ForbiddenError()

        requests = find_documents(db, REQUESTS_COLLECTION, teamId=team_id)
        users = get_documents(db, USERS_COLLECTION, [r["userId"] for r in requests])
        for request in requests:
            request["user"] = users.get(request["userId"])
        return requests

    @staticmethod
    def list_team_invitations(
        db: Client, team_id: str, leader_id: str | None
    ) -> list[dict[str, Any]]:
        """Invitations a team has sent that are still open."""
        team = get_document(db, TEAMS_COLLECTION, team_id)
        if team is None:
            raise NotFoundError("Team not found.")
        if not leader_id or team.get("leaderId") != leader_id:
            raise ForbiddenError()
        return find_documents(db, INVITATIONS_COLLECTION, teamId=team_id)

    @staticmethod
    def list_user_requests(db: Client, user_id: str) -> list[dict[str, Any]]:
        return find_documents(db, REQUESTS_COLLECTION, userId=user_id)

    @staticmethod
    def list_user_invitations(db: Client, user_id: str) -> list[dict[str, Any]]:
        """Invitations addressed to ``user_id``, with the inviting team."""
        invitations = find_documents(db, INVITATIONS_COLLECTION, userId=user_id)
        teams = get_documents(db, TEAMS_COLLECTION, [i["teamId"] for i in invitations])
        for invitation in invitations:
            invitation["team"] = teams.get(invitation["teamId"])
        return invitations
