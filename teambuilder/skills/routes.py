"""Routes for the skills blueprint."""

from firebase_admin import firestore
from flask import current_app, jsonify

from teambuilder.auth.decorators import login_required
from teambuilder.core.forms import validate_or_raise

from . import bp
from .forms import SkillForm
from .services import SkillService, normalize_skill


@bp.route("/", methods=["GET"])
@login_required
def list_skills():
    db = firestore.client()
    return jsonify({"status": "success", "skills": SkillService.get_skills(db)})


@bp.route("/", methods=["POST"])
@login_required
def add_skill():
    """Add a skill to the shared vocabulary if it is not already there."""
    form = validate_or_raise(SkillForm())
    db = firestore.client()
    added = SkillService.add_new_skill(db, form.name.data)
    if added:
        current_app.logger.info(f"Skill added: {form.name.data}")
    return (
        jsonify(
            {
                "status": "success",
                "skill": normalize_skill(form.name.data),
                "added": added,
            }
        ),
        201 if added else 200,
    )
