"""Core data types for the teambuilder application."""

from typing import Any, Dict, List, Optional, TypedDict  # noqa: UP035


class Appeal(TypedDict):
    """A recruiting team's pitch and the skills it is looking for."""

    description: str
    requiredSkills: List[str]  # noqa: UP006


class UserProfile(TypedDict, total=False):
    """A user document in Firestore."""

    id: str
    email: str
    fullName: str
    avatarUrl: Optional[str]
    year: str
    bio: str
    skills: List[str]  # noqa: UP006
    teamId: Optional[str]


class Team(TypedDict, total=False):
    """A team document in Firestore."""

    id: str
    name: str
    projectIdea: str
    leaderId: str
    members: Dict[str, bool]  # noqa: UP006
    isRecruiting: bool
    appeal: Appeal


class ChatMessage(TypedDict, total=False):
    """A chat message; community messages carry no teamId."""

    id: str
    teamId: str
    senderId: str
    senderName: str
    senderAvatar: Optional[str]
    text: str
    timestamp: Any
    readBy: Dict[str, bool]  # noqa: UP006

