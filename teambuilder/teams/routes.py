"""Routes for the teams blueprint."""

from firebase_admin import firestore
from flask import current_app, jsonify, request, session

from teambuilder.auth.decorators import login_required
from teambuilder.core.constants import SESSION_USER_ID
from teambuilder.core.forms import validate_or_raise

from . import bp
from .forms import DecisionForm, InviteForm, TeamForm
from .membership import MembershipService
from .models import team_fields
from .services import TeamService


def _fields_from_form(form):
    return team_fields(
        name=form.name.data,
        project_idea=form.project_idea.data,
        is_recruiting=form.is_recruiting.data,
        appeal_description=form.appeal_description.data,
        required_skills=form.required_skills.data,
    )


@bp.route("/", methods=["GET"])
@login_required
def list_teams():
    """List teams; ``?filter=recruiting`` keeps only recruiting ones."""
    db = firestore.client()
    recruiting_only = request.args.get("filter") == "recruiting"
    teams = TeamService.list_teams(db, recruiting_only=recruiting_only)
    return jsonify({"status": "success", "teams": teams})


@bp.route("/", methods=["POST"])
@login_required(verified_required=True)
def create_team():
    """Create a team led by the current user."""
    form = validate_or_raise(TeamForm())
    db = firestore.client()
    team_id = TeamService.create_team(
        db, session.get(SESSION_USER_ID), _fields_from_form(form)
    )
    return jsonify({"status": "success", "teamId": team_id}), 201


@bp.route("/<string:team_id>", methods=["GET"])
@login_required
def view_team(team_id):
    db = firestore.client()
    data = TeamService.get_team_dashboard_data(
        db, team_id, session.get(SESSION_USER_ID)
    )
    return jsonify({"status": "success", **data})


@bp.route("/<string:team_id>/update", methods=["POST"])
@login_required(verified_required=True)
def update_team(team_id):
    form = validate_or_raise(TeamForm())
    db = firestore.client()
    TeamService.update_team(
        db, team_id, session.get(SESSION_USER_ID), _fields_from_form(form)
    )
    return jsonify({"status": "success", "message": "Team updated."})


@bp.route("/<string:team_id>/delete", methods=["POST"])
@login_required(verified_required=True)
def delete_team(team_id):
    """Disband the team; only its leader may do this."""
    db = firestore.client()
    former_members = TeamService.delete_team(
        db, team_id, session.get(SESSION_USER_ID)
    )
    current_app.logger.info(f"Team {team_id} deleted")
    return jsonify(
        {
            "status": "success",
            "message": "Team deleted.",
            "formerMembers": former_members,
        }
    )


@bp.route("/<string:team_id>/join", methods=["POST"])
@login_required(verified_required=True)
def request_to_join(team_id):
    db = firestore.client()
    request_id = MembershipService.request_to_join(
        db, session.get(SESSION_USER_ID), team_id
    )
    return (
        jsonify(
            {
                "status": "success",
                "requestId": request_id,
                "message": "Request to join sent.",
            }
        ),
        201,
    )


@bp.route("/<string:team_id>/invite", methods=["POST"])
@login_required(verified_required=True)
def invite_to_team(team_id):
    """Invite a teamless user to the current user's team."""
    form = validate_or_raise(InviteForm())
    db = firestore.client()
    invitation_id = MembershipService.invite_to_team(
        db, session.get(SESSION_USER_ID), form.user_id.data, team_id
    )
    return (
        jsonify(
            {
                "status": "success",
                "invitationId": invitation_id,
                "message": "Invitation sent.",
            }
        ),
        201,
    )


@bp.route("/<string:team_id>/members/<string:member_id>/remove", methods=["POST"])
@login_required(verified_required=True)
def remove_member(team_id, member_id):
    db = firestore.client()
    TeamService.remove_member(db, team_id, session.get(SESSION_USER_ID), member_id)
    return jsonify({"status": "success", "message": "Member removed."})


@bp.route("/<string:team_id>/requests", methods=["GET"])
@login_required
def team_requests(team_id):
    db = firestore.client()
    requests = MembershipService.list_team_requests(
        db, team_id, session.get(SESSION_USER_ID)
    )
    return jsonify({"status": "success", "requests": requests})


@bp.route("/<string:team_id>/invitations", methods=["GET"])
@login_required
def team_invitations(team_id):
    db = firestore.client()
    invitations = MembershipService.list_team_invitations(
        db, team_id, session.get(SESSION_USER_ID)
    )
    return jsonify({"status": "success", "invitations": invitations})


@bp.route("/requests/mine", methods=["GET"])
@login_required
def my_requests():
    db = firestore.client()
    requests = MembershipService.list_user_requests(db, session[SESSION_USER_ID])
    return jsonify({"status": "success", "requests": requests})


@bp.route("/requests/<string:request_id>", methods=["POST"])
@login_required(verified_required=True)
def handle_request(request_id):
    """Accept or decline a join request for a team the user leads."""
    form = validate_or_raise(DecisionForm())
    db = firestore.client()
    outcome = MembershipService.handle_join_request(
        db, request_id, session.get(SESSION_USER_ID), bool(form.accept.data)
    )
    return jsonify({"status": "success", "outcome": outcome.to_dict()})


@bp.route("/invitations/mine", methods=["GET"])
@login_required
def my_invitations():
    db = firestore.client()
    invitations = MembershipService.list_user_invitations(
        db, session[SESSION_USER_ID]
    )
    return jsonify({"status": "success", "invitations": invitations})


@bp.route("/invitations/<string:invitation_id>", methods=["POST"])
@login_required(verified_required=True)
def handle_invitation(invitation_id):
    """Accept or decline an invitation addressed to the current user."""
    form = validate_or_raise(DecisionForm())
    db = firestore.client()
    outcome = MembershipService.handle_invitation(
        db, invitation_id, session.get(SESSION_USER_ID), bool(form.accept.data)
    )
    return jsonify({"status": "success", "outcome": outcome.to_dict()})
