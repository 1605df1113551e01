"""Rank teamless users against a free-text query with a chat-completion model.

The model is treated as an opaque ranking function: its output is only
trusted after it has been parsed and checked against the candidate list.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

import openai
from openai import OpenAI

from teambuilder.core.constants import DEFAULT_OPENAI_MODEL
from teambuilder.errors import ExternalServiceError

logger = logging.getLogger(__name__)

CANDIDATE_FIELDS = ("id", "fullName", "year", "bio", "skills")

SEARCH_FAILED_MESSAGE = "Failed to get AI-powered results. Please try again."

SYSTEM_PROMPT = (
    "You match hackathon participants to what a team is looking for. "
    "Reply with a JSON array of student ids only."
)

PROMPT_TEMPLATE = """
Based on the following query: "{query}", analyze the list of students provided below.
Return a JSON array containing the IDs of the students who are the best match, sorted from most to least relevant.
Do not include any students who are a poor match. Only return the student IDs.

Student Data:
{students}

Your response must be a valid JSON array of strings, like this: ["studentId1", "studentId2", "studentId3"]
"""


def candidate_summary(user: dict[str, Any]) -> dict[str, Any]:
    return {field: user.get(field) for field in CANDIDATE_FIELDS}


def build_prompt(query: str, candidates: Iterable[dict[str, Any]]) -> str:
    students = [candidate_summary(c) for c in candidates]
    return PROMPT_TEMPLATE.format(query=query, students=json.dumps(students, indent=2))


def parse_ranked_ids(content: str | None) -> list[str] | None:
    """Parse the model reply; None unless it is a JSON array of strings."""
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[len("json"):]
    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(result, list) and all(isinstance(item, str) for item in result):
        return result
    return None


class CandidateSearchService:
    """Find the teamless users that best match a query."""

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        client: Any = None,
    ) -> None:
        self.model = model or DEFAULT_OPENAI_MODEL
        self._api_key = api_key
        self._client = client

    @classmethod
    def from_config(cls, config: Any) -> CandidateSearchService:
        return cls(config.get("OPENAI_API_KEY"), config.get("OPENAI_MODEL"))

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise ExternalServiceError(
                    "AI search is not configured.", status_code=503
                )
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def find_matching_candidates(
        self, query: str | None, candidates: list[dict[str, Any]]
    ) -> list[str]:
        """Return candidate ids ordered from most to least relevant.

        Unknown ids are dropped and duplicates removed. A reply that is not
        a JSON array of strings yields an empty list.
        """
        query = (query or "").strip()
        if not query or not candidates:
            return []

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(query, candidates)},
                ],
                temperature=0,
            )
        except openai.OpenAIError as e:
            logger.error("Error calling the AI search API: %s", e)
            raise ExternalServiceError(SEARCH_FAILED_MESSAGE) from e

        content = response.choices[0].message.content
        ranked = parse_ranked_ids(content)
        if ranked is None:
            logger.error("AI search returned an unexpected format: %r", content)
            return []

        known = {c.get("id") for c in candidates}
        return [cid for cid in dict.fromkeys(ranked) if cid in known]
