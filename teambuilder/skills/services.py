"""The shared skill vocabulary."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Iterable

from teambuilder.core.constants import DEFAULT_SKILLS, SKILLS_COLLECTION
from teambuilder.errors import ValidationError
from teambuilder.store import find_documents

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def normalize_skill(name: str | None) -> str:
    """Trim a skill name and collapse inner whitespace."""
    return re.sub(r"\s+", " ", (name or "").strip())


def skill_key(name: str) -> str:
    """Case-insensitive identity of a skill name."""
    return normalize_skill(name).lower()


class SkillService:
    """Service class for the skill tags users and teams pick from."""

    @staticmethod
    def get_skills(db: Client) -> list[str]:
        """Return the defaults plus every stored skill, sorted."""
        skills = {skill_key(s): s for s in DEFAULT_SKILLS}
        for doc in find_documents(db, SKILLS_COLLECTION):
            name = normalize_skill(doc.get("name"))
            if name:
                skills.setdefault(skill_key(name), name)
        return sorted(skills.values(), key=str.lower)

    @staticmethod
    def add_new_skill(
        db: Client, name: str | None, known: Iterable[str] | None = None
    ) -> bool:
        """Store ``name`` unless it is already known.

        Comparison ignores case. Returns True when a new skill was written.
        """
        name = normalize_skill(name)
        if not name:
            raise ValidationError("Skill name cannot be empty.")

        if known is None:
            known = SkillService.get_skills(db)
        if skill_key(name) in {skill_key(s) for s in known}:
            return False

        db.collection(SKILLS_COLLECTION).add({"name": name})
        logger.info("Added skill %r", name)
        return True

    @staticmethod
    def register_skills(db: Client, names: Iterable[str]) -> list[str]:
        """Add any unknown skills from ``names``; returns the ones added.

        Failures are logged and swallowed.
        """
        candidates = [normalize_skill(n) for n in names if normalize_skill(n)]
        added: list[str] = []
        if not candidates:
            return added
        try:
            known = SkillService.get_skills(db)
            for name in candidates:
                if SkillService.add_new_skill(db, name, known):
                    known.append(name)
                    added.append(name)
        except Exception as e:
            logger.error("Error registering skills %s: %s", candidates, e)
        return added
