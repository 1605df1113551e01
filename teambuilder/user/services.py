"""Service layer for user profiles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from teambuilder.core.constants import USER_YEARS, USERS_COLLECTION
from teambuilder.core.types import UserProfile
from teambuilder.errors import (
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from teambuilder.skills.services import SkillService
from teambuilder.store import find_documents, get_document

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("fullName", "avatarUrl", "year", "bio", "skills")


def profile_fields(
    full_name: str | None,
    year: str | None,
    bio: str | None,
    skills: list[str] | None,
    avatar_url: str | None = None,
) -> dict[str, Any]:
    """Validate and assemble the user-editable profile fields."""
    full_name = (full_name or "").strip()
    bio = (bio or "").strip()
    skills = [s.strip() for s in (skills or []) if s and s.strip()]
    errors = {}
    if not full_name:
        errors["full_name"] = ["Full name is required."]
    if year not in USER_YEARS:
        errors["year"] = ["Please choose a valid year."]
    if not bio:
        errors["bio"] = ["Bio is required."]
    if not skills:
        errors["skills"] = ["Please add at least one skill."]
    if errors:
        raise ValidationError("Please complete every profile field.", errors)
    return {
        "fullName": full_name,
        "avatarUrl": (avatar_url or "").strip() or None,
        "year": year,
        "bio": bio,
        "skills": list(dict.fromkeys(skills)),
    }


class UserService:
    """Service class for user profile operations."""

    @staticmethod
    def create_profile(
        db: Client, user_id: str | None, email: str | None, fields: dict[str, Any]
    ) -> UserProfile:
        """Create the caller's profile; each account gets exactly one."""
        if not user_id:
            raise UnauthorizedError()

        ref = db.collection(USERS_COLLECTION).document(user_id)
        if ref.get().exists:
            raise DuplicateResourceError("Your profile already exists.")

        profile: UserProfile = {
            "id": user_id,
            "email": email or "",
            "fullName": fields["fullName"],
            "avatarUrl": fields.get("avatarUrl"),
            "year": fields["year"],
            "bio": fields["bio"],
            "skills": fields["skills"],
            "teamId": None,
        }
        ref.set(dict(profile))
        logger.info("Created profile for user %s", user_id)

        SkillService.register_skills(db, profile["skills"])
        return profile

    @staticmethod
    def update_profile(
        db: Client, user_id: str | None, target_id: str, fields: dict[str, Any]
    ) -> None:
        """Update the editable fields of the caller's own profile."""
        if not user_id:
            raise UnauthorizedError()
        if user_id != target_id:
            raise ForbiddenError("You can only edit your own profile.")

        ref = db.collection(USERS_COLLECTION).document(target_id)
        if not ref.get().exists:
            raise NotFoundError("User not found.")

        update = {key: fields[key] for key in PROFILE_FIELDS if key in fields}
        if update:
            ref.update(update)
        if "skills" in update:
            SkillService.register_skills(db, update["skills"])

    @staticmethod
    def get_user(db: Client, user_id: str) -> dict[str, Any]:
        user = get_document(db, USERS_COLLECTION, user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    @staticmethod
    def list_users(db: Client) -> list[dict[str, Any]]:
        users = find_documents(db, USERS_COLLECTION)
        return sorted(users, key=lambda u: u.get("fullName", "").lower())

    @staticmethod
    def list_available_users(
        db: Client, exclude_id: str | None = None
    ) -> list[dict[str, Any]]:
        """Users without a team, optionally leaving out ``exclude_id``."""
        return [
            user
            for user in UserService.list_users(db)
            if not user.get("teamId") and user["id"] != exclude_id
        ]
