"""Data models and state transitions for the teams feature.

Each ``*_writes`` function turns one domain transition into the list of
path writes that must land together. They only compute writes; the service
layer reads the authoritative state and commits the result.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from teambuilder.core.constants import (
    INVITATIONS_COLLECTION,
    REQUESTS_COLLECTION,
    TEAMS_COLLECTION,
    USERS_COLLECTION,
)
from teambuilder.core.types import Appeal, Team
from teambuilder.errors import ValidationError
from teambuilder.store import Write, path

EDITABLE_TEAM_FIELDS = ("name", "projectIdea", "isRecruiting", "appeal")

SKIP_ALREADY_ON_TEAM = "already_on_team"
SKIP_TEAM_MISSING = "team_missing"
SKIP_USER_MISSING = "user_missing"


@dataclass
class MembershipOutcome:
    """Result of accepting or declining a join request or invitation."""

    team_id: str
    user_id: str
    accepted: bool
    joined: bool = False
    reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.accepted and not self.joined

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if not self.accepted:
            data["status"] = "declined"
        elif self.joined:
            data["status"] = "joined"
        else:
            data["status"] = "skipped"
        return data


def build_appeal(
    is_recruiting: bool, description: str | None, required_skills: Iterable[str] | None
) -> Appeal | None:
    """Return the appeal a team should carry, or None when not recruiting."""
    if not is_recruiting:
        return None
    description = (description or "").strip()
    skills = [s.strip() for s in (required_skills or []) if s and s.strip()]
    if not description:
        raise ValidationError("A recruiting team needs an appeal description.")
    return {"description": description, "requiredSkills": skills}


def team_fields(
    name: str,
    project_idea: str,
    is_recruiting: bool,
    appeal_description: str | None = None,
    required_skills: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Validate and assemble the editable fields of a team."""
    name = (name or "").strip()
    project_idea = (project_idea or "").strip()
    if not name or not project_idea:
        raise ValidationError("Please provide a team name and project idea.")
    return {
        "name": name,
        "projectIdea": project_idea,
        "isRecruiting": bool(is_recruiting),
        "appeal": build_appeal(is_recruiting, appeal_description, required_skills),
    }


def new_team_document(leader_id: str, fields: dict[str, Any]) -> Team:
    """A fresh team led by ``leader_id``, who is also its only member."""
    team: Team = {
        "name": fields["name"],
        "projectIdea": fields["projectIdea"],
        "leaderId": leader_id,
        "members": {leader_id: True},
        "isRecruiting": fields["isRecruiting"],
    }
    if fields.get("appeal"):
        team["appeal"] = fields["appeal"]
    return team


def _discard_writes(
    request_ids: Iterable[str], invitation_ids: Iterable[str]
) -> list[Write]:
    writes = [Write(path(REQUESTS_COLLECTION, rid)) for rid in dict.fromkeys(request_ids)]
    writes += [
        Write(path(INVITATIONS_COLLECTION, iid)) for iid in dict.fromkeys(invitation_ids)
    ]
    return writes


def create_team_writes(
    team_id: str,
    leader_id: str,
    fields: dict[str, Any],
    stale_request_ids: Iterable[str] = (),
    stale_invitation_ids: Iterable[str] = (),
) -> list[Write]:
    """Create the team and point the leader's profile at it."""
    return [
        Write(path(TEAMS_COLLECTION, team_id), new_team_document(leader_id, fields)),
        Write(path(USERS_COLLECTION, leader_id, "teamId"), team_id),
    ] + _discard_writes(stale_request_ids, stale_invitation_ids)


def update_team_writes(
    team_id: str, fields: dict[str, Any], current: dict[str, Any] | None = None
) -> list[Write]:
    """Overwrite the editable fields; a missing appeal deletes the field.

    Given the ``current`` team, fields it does not carry are not deleted again.
    """
    writes = []
    for field in EDITABLE_TEAM_FIELDS:
        if field not in fields:
            continue
        if fields[field] is None and current is not None and field not in current:
            continue
        writes.append(Write(path(TEAMS_COLLECTION, team_id, field), fields[field]))
    return writes


def delete_team_writes(
    team_id: str,
    released_ids: Iterable[str],
    request_ids: Iterable[str],
    invitation_ids: Iterable[str],
) -> list[Write]:
    """Remove the team, clear the released members' teamId and drop pending items."""
    writes = [Write(path(TEAMS_COLLECTION, team_id))]
    for member_id in dict.fromkeys(released_ids):
        writes.append(Write(path(USERS_COLLECTION, member_id, "teamId")))
    return writes + _discard_writes(request_ids, invitation_ids)


def grant_membership_writes(
    team_id: str,
    user_id: str,
    stale_request_ids: Iterable[str] = (),
    stale_invitation_ids: Iterable[str] = (),
) -> list[Write]:
    """Add ``user_id`` to the team and discard the user's other pending items."""
    return [
        Write(path(TEAMS_COLLECTION, team_id, "members", user_id), True),
        Write(path(USERS_COLLECTION, user_id, "teamId"), team_id),
    ] + _discard_writes(stale_request_ids, stale_invitation_ids)


def remove_member_writes(
    team_id: str, user_id: str, clear_profile: bool = True
) -> list[Write]:
    writes = [Write(path(TEAMS_COLLECTION, team_id, "members", user_id))]
    if clear_profile:
        writes.append(Write(path(USERS_COLLECTION, user_id, "teamId")))
    return writes
