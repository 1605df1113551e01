"""Expose the mirrored store state to the signed-in client."""

from firebase_admin import firestore
from flask import Blueprint, g, jsonify, session

from .auth.decorators import login_required
from .chat.services import serialize_message
from .core.constants import (
    COMMUNITY_MESSAGES_COLLECTION,
    MESSAGES_COLLECTION,
    MIRRORED_COLLECTIONS,
    SESSION_MIRROR_KEY,
    SKILLS_COLLECTION,
)
from .extensions import mirrors
from .skills.services import SkillService
from .store import find_documents

bp = Blueprint("sync", __name__)

MESSAGE_COLLECTIONS = (MESSAGES_COLLECTION, COMMUNITY_MESSAGES_COLLECTION)


def read_store_state(db, team_id=None):
    """One-shot read of every mirrored collection and the skill list.

    Team messages are limited to ``team_id``; without a team there are none.
    """
    state = {
        name: find_documents(db, name)
        for name in MIRRORED_COLLECTIONS
        if name != MESSAGES_COLLECTION
    }
    state[MESSAGES_COLLECTION] = (
        find_documents(db, MESSAGES_COLLECTION, teamId=team_id) if team_id else []
    )
    state[SKILLS_COLLECTION] = SkillService.get_skills(db)
    return state


def visible_team_messages(messages, team_id):
    if not team_id:
        return []
    return [m for m in messages if m.get("teamId") == team_id]


def _json_safe(state):
    for name in MESSAGE_COLLECTIONS:
        state[name] = [serialize_message(m) for m in state.get(name, [])]
    return state


@bp.route("/sync", methods=["GET"])
@login_required
def sync():
    """Return the session's mirror, or read the store when none is open."""
    team_id = (g.user or {}).get("teamId")
    mirror_key = session.get(SESSION_MIRROR_KEY)
    mirror = mirrors.get(mirror_key) if mirror_key else None
    if mirror is not None and mirror.active:
        state, source = mirror.snapshot(), "mirror"
        state[MESSAGES_COLLECTION] = visible_team_messages(
            state.get(MESSAGES_COLLECTION, []), team_id
        )
    else:
        state, source = read_store_state(firestore.client(), team_id), "store"
    return jsonify({"status": "success", "source": source, "data": _json_safe(state)})
