"""Routes for the chat blueprint."""

from firebase_admin import firestore
from flask import jsonify, session

from teambuilder.auth.decorators import login_required
from teambuilder.core.constants import SESSION_USER_ID
from teambuilder.core.forms import validate_or_raise

from . import bp
from .forms import MessageForm
from .services import ChatService, serialize_message


def _send(team_id=None):
    form = validate_or_raise(MessageForm())
    db = firestore.client()
    message = ChatService.send_message(
        db, session.get(SESSION_USER_ID), form.text.data, team_id=team_id
    )
    return jsonify({"status": "success", "message": serialize_message(message)}), 201


@bp.route("/team/<string:team_id>/messages", methods=["GET"])
@login_required
def team_messages(team_id):
    db = firestore.client()
    messages = ChatService.list_messages(db, session.get(SESSION_USER_ID), team_id)
    return jsonify({"status": "success", "messages": messages})


@bp.route("/team/<string:team_id>/messages", methods=["POST"])
@login_required(verified_required=True)
def send_team_message(team_id):
    """Post a message to a team's chat; the sender must be a member."""
    return _send(team_id)


@bp.route("/messages/<string:message_id>/read", methods=["POST"])
@login_required
def mark_team_message_read(message_id):
    db = firestore.client()
    ChatService.mark_read(db, session.get(SESSION_USER_ID), message_id)
    return jsonify({"status": "success"})


@bp.route("/messages/<string:message_id>/delete", methods=["POST"])
@login_required
def delete_team_message(message_id):
    db = firestore.client()
    ChatService.delete_message(db, session.get(SESSION_USER_ID), message_id)
    return jsonify({"status": "success", "message": "Message deleted."})


@bp.route("/community/messages", methods=["GET"])
@login_required
def community_messages():
    db = firestore.client()
    messages = ChatService.list_messages(db, session.get(SESSION_USER_ID))
    return jsonify({"status": "success", "messages": messages})


@bp.route("/community/messages", methods=["POST"])
@login_required(verified_required=True)
def send_community_message():
    return _send()


@bp.route("/community/messages/<string:message_id>/read", methods=["POST"])
@login_required
def mark_community_message_read(message_id):
    db = firestore.client()
    ChatService.mark_read(
        db, session.get(SESSION_USER_ID), message_id, community=True
    )
    return jsonify({"status": "success"})


@bp.route("/community/messages/<string:message_id>/delete", methods=["POST"])
@login_required
def delete_community_message(message_id):
    db = firestore.client()
    ChatService.delete_message(
        db, session.get(SESSION_USER_ID), message_id, community=True
    )
    return jsonify({"status": "success", "message": "Message deleted."})
