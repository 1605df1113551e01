import secrets

from firebase_admin import auth, exceptions, firestore
from flask import current_app, jsonify, request, session
from flask_wtf.csrf import generate_csrf

from teambuilder.core.constants import (
    SESSION_EMAIL,
    SESSION_EMAIL_VERIFIED,
    SESSION_MIRROR_KEY,
    SESSION_USER_ID,
    USERS_COLLECTION,
)
from teambuilder.core.forms import validate_or_raise
from teambuilder.errors import (
    DuplicateResourceError,
    ExternalServiceError,
    PreconditionError,
    UnauthorizedError,
    ValidationError,
)
from teambuilder.extensions import mirrors
from teambuilder.utils import EmailError, send_email

from . import bp
from .decorators import login_required
from .forms import RegisterForm
from .utils import remaining_cooldown, start_cooldown


def _send_verification_email(email, full_name):
    verification_link = auth.generate_email_verification_link(email)
    send_email(
        to=email,
        subject="Verify Your Email",
        template="email/verify_email.html",
        user={"fullName": full_name},
        verification_link=verification_link,
    )


@bp.route("/csrf_token", methods=["GET"])
def csrf_token():
    """Hand the client a CSRF token to send back in the X-CSRFToken header."""
    return jsonify({"status": "success", "csrfToken": generate_csrf()})


@bp.route("/register", methods=["POST"])
def register():
    """Create a Firebase Auth account and send the verification email."""
    form = validate_or_raise(RegisterForm())
    email = form.email.data
    full_name = form.full_name.data.strip()

    try:
        user_record = auth.create_user(
            email=email,
            password=form.password.data,
            display_name=full_name,
            email_verified=False,
        )
    except auth.EmailAlreadyExistsError:
        raise DuplicateResourceError("Email address is already registered.")
    except Exception as e:
        current_app.logger.error(f"Error during registration: {e}")
        raise ExternalServiceError(
            "An unexpected error occurred during registration."
        ) from e

    verification_sent = True
    try:
        _send_verification_email(email, full_name)
    except (EmailError, exceptions.FirebaseError) as e:
        current_app.logger.error(f"Error sending verification email: {e}")
        verification_sent = False

    return (
        jsonify(
            {
                "status": "success",
                "uid": user_record.uid,
                "verificationSent": verification_sent,
                "message": "Registration successful! Please check your email "
                "to verify your account.",
            }
        ),
        201,
    )


@bp.route("/session_login", methods=["POST"])
def session_login():
    """
    Called by the client after a successful Firebase sign-in.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    id_token = (request.get_json(silent=True) or {}).get("idToken")
    if not id_token:
        raise ValidationError("Missing idToken.")

    try:
        decoded_token = auth.verify_id_token(id_token)
    except Exception as e:
        current_app.logger.error(f"Error during session login: {e}")
        raise UnauthorizedError("Invalid token or server error.") from e

    uid = decoded_token["uid"]
    db = firestore.client()
    profile_exists = db.collection(USERS_COLLECTION).document(uid).get().exists

    previous_key = session.get(SESSION_MIRROR_KEY)
    if previous_key:
        mirrors.close(previous_key)
    session.clear()
    session[SESSION_USER_ID] = uid
    session[SESSION_EMAIL] = decoded_token.get("email")
    session[SESSION_EMAIL_VERIFIED] = bool(decoded_token.get("email_verified"))

    if current_app.config.get("LIVE_MIRROR_ENABLED"):
        session[SESSION_MIRROR_KEY] = secrets.token_urlsafe(16)
        mirrors.open(session[SESSION_MIRROR_KEY], db)

    return jsonify(
        {
            "status": "success",
            "profileExists": profile_exists,
            "emailVerified": session[SESSION_EMAIL_VERIFIED],
        }
    )


@bp.route("/logout", methods=["POST"])
def logout():
    """Clear the server-side session and tear down the session's mirror."""
    mirror_key = session.get(SESSION_MIRROR_KEY)
    if mirror_key:
        mirrors.close(mirror_key)
    session.clear()
    return jsonify({"status": "success", "message": "You have been logged out."})


@bp.route("/resend_verification", methods=["POST"])
@login_required
def resend_verification():
    """Send a fresh verification link, at most once per cooldown window."""
    retry_after = remaining_cooldown()
    if retry_after:
        return (
            jsonify(
                {
                    "status": "error",
                    "message": f"Please wait {retry_after}s before requesting "
                    "another email.",
                    "retryAfter": retry_after,
                }
            ),
            429,
        )

    user_record = auth.get_user(session[SESSION_USER_ID])
    if user_record.email_verified:
        session[SESSION_EMAIL_VERIFIED] = True
        raise PreconditionError("Your email address is already verified.")

    try:
        _send_verification_email(user_record.email, user_record.display_name or "")
    except EmailError as e:
        current_app.logger.error(f"Error resending verification email: {e}")
        raise ExternalServiceError(
            "Failed to resend verification email. Please try again later."
        ) from e

    start_cooldown()
    return jsonify(
        {
            "status": "success",
            "message": "A new verification link has been sent to your email.",
        }
    )


@bp.route("/status", methods=["GET"])
@login_required
def status():
    """Refresh the session's email verification state from Firebase Auth."""
    uid = session[SESSION_USER_ID]
    user_record = auth.get_user(uid)
    session[SESSION_EMAIL_VERIFIED] = bool(user_record.email_verified)

    db = firestore.client()
    profile_exists = db.collection(USERS_COLLECTION).document(uid).get().exists
    return jsonify(
        {
            "status": "success",
            "emailVerified": session[SESSION_EMAIL_VERIFIED],
            "profileExists": profile_exists,
            "resendAvailableIn": remaining_cooldown(),
        }
    )
