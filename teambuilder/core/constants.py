"""Global constants for the teambuilder application."""

# Collection names
USERS_COLLECTION = "users"
TEAMS_COLLECTION = "teams"
REQUESTS_COLLECTION = "requests"
INVITATIONS_COLLECTION = "invitations"
MESSAGES_COLLECTION = "messages"
COMMUNITY_MESSAGES_COLLECTION = "communityMessages"
SKILLS_COLLECTION = "skills"

# Collections mirrored for an authenticated session
MIRRORED_COLLECTIONS = (
    USERS_COLLECTION,
    TEAMS_COLLECTION,
    REQUESTS_COLLECTION,
    INVITATIONS_COLLECTION,
    MESSAGES_COLLECTION,
    COMMUNITY_MESSAGES_COLLECTION,
)

# Profile fields
USER_YEARS = ("1st Year", "2nd Year", "3rd Year", "Final Year")

DEFAULT_SKILLS = (
    "React.js",
    "Node.js",
    "Python",
    "Java",
    "UI/UX Design",
    "ML/AI",
    "Data Science",
    "Project Management",
)

# Firestore rejects commits with more than 500 writes
FIRESTORE_BATCH_LIMIT = 500

MESSAGE_MAX_LENGTH = 2000

# Auth
VERIFICATION_RESEND_COOLDOWN = 60
SESSION_USER_ID = "user_id"
SESSION_EMAIL = "email"
SESSION_EMAIL_VERIFIED = "email_verified"
SESSION_MIRROR_KEY = "mirror_key"
SESSION_VERIFICATION_SENT_AT = "verification_sent_at"

# AI search
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# Email-related constants
SMTP_AUTH_ERROR_CODE = 534
