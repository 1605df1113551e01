"""Helpers for the email verification cooldown."""

import time

from flask import current_app, session

from teambuilder.core.constants import SESSION_VERIFICATION_SENT_AT


def remaining_cooldown(now=None):
    """Seconds left before another verification email may be sent."""
    sent_at = session.get(SESSION_VERIFICATION_SENT_AT)
    if sent_at is None:
        return 0
    now = time.time() if now is None else now
    cooldown = current_app.config["VERIFICATION_RESEND_COOLDOWN"]
    return max(0, int(round(sent_at + cooldown - now)))


def start_cooldown(now=None):
    """Record that a verification email was just sent."""
    session[SESSION_VERIFICATION_SENT_AT] = time.time() if now is None else now
