"""Routes for the user blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, session

from teambuilder.auth.decorators import login_required
from teambuilder.core.constants import SESSION_EMAIL, SESSION_USER_ID
from teambuilder.core.forms import validate_or_raise
from teambuilder.errors import NotFoundError
from teambuilder.search import CandidateSearchService

from . import bp
from .forms import ProfileForm, SearchForm
from .services import UserService, profile_fields


def _fields_from_form(form):
    return profile_fields(
        full_name=form.full_name.data,
        year=form.year.data,
        bio=form.bio.data,
        skills=form.skills.data,
        avatar_url=form.avatar_url.data,
    )


@bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the current user's profile, or 404 if it is not set up yet."""
    if g.user is None:
        raise NotFoundError("Profile not found.")
    return jsonify({"status": "success", "user": g.user})


@bp.route("/profile", methods=["POST"])
@login_required
def create_profile():
    form = validate_or_raise(ProfileForm())
    db = firestore.client()
    profile = UserService.create_profile(
        db,
        session.get(SESSION_USER_ID),
        session.get(SESSION_EMAIL),
        _fields_from_form(form),
    )
    return jsonify({"status": "success", "user": profile}), 201


@bp.route("/profile/update", methods=["POST"])
@login_required
def update_profile():
    form = validate_or_raise(ProfileForm())
    db = firestore.client()
    user_id = session.get(SESSION_USER_ID)
    UserService.update_profile(db, user_id, user_id, _fields_from_form(form))
    return jsonify({"status": "success", "message": "Profile updated."})


@bp.route("/", methods=["GET"])
@login_required
def list_users():
    db = firestore.client()
    return jsonify({"status": "success", "users": UserService.list_users(db)})


@bp.route("/available", methods=["GET"])
@login_required
def available_users():
    """List users who are not on a team."""
    db = firestore.client()
    users = UserService.list_available_users(db, session.get(SESSION_USER_ID))
    return jsonify({"status": "success", "users": users})


@bp.route("/search", methods=["POST"])
@login_required
def search_users():
    """Rank available users against a free-text query."""
    form = validate_or_raise(SearchForm())
    db = firestore.client()
    candidates = UserService.list_available_users(db, session.get(SESSION_USER_ID))
    service = CandidateSearchService.from_config(current_app.config)
    ranked_ids = service.find_matching_candidates(form.query.data, candidates)

    by_id = {user["id"]: user for user in candidates}
    current_app.logger.info(
        f"AI search matched {len(ranked_ids)} of {len(candidates)} candidates"
    )
    return jsonify(
        {
            "status": "success",
            "ids": ranked_ids,
            "users": [by_id[user_id] for user_id in ranked_ids],
        }
    )


@bp.route("/<string:user_id>", methods=["GET"])
@login_required
def view_user(user_id):
    db = firestore.client()
    return jsonify({"status": "success", "user": UserService.get_user(db, user_id)})
