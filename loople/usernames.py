"""
loople/usernames.py
Username generation and validation.

The database trigger is the source of truth for assigned usernames; these
helpers produce previews and validate user edits on the settings page.
"""

import re
import unicodedata

MIN_LENGTH = 3
MAX_LENGTH = 30

RESERVED_USERNAMES = frozenset(
    {"admin", "administrator", "root", "system", "api", "www", "mail", "support"}
)

_FORMAT_RE = re.compile(r"[a-z0-9][a-z0-9._-]*[a-z0-9]")
_CONSECUTIVE_SPECIALS_RE = re.compile(r"[._-]{2,}")


def _clean_name(name: str) -> str:
    """Lowercase, strip diacritics and drop anything that is not [a-z0-9]."""
    decomposed = unicodedata.normalize("NFD", (name or "").lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"[^a-z0-9]", "", stripped)


def generate_base_username(first_name: str, last_name: str) -> str:
    """
    Build a 'first_last' username.

    "John Doe" → "john_doe", "José García" → "jose_garcia",
    "Mary O'Brien" → "mary_obrien".  Short results are padded with 'user'.
    The underscore keeps the default inside the @mention handle grammar.
    """
    first = _clean_name(first_name)
    last = _clean_name(last_name)

    username = f"{first}_{last}"
    if len(username) < MIN_LENGTH:
        username = first + last

    username = username.strip("_")
    if len(username) < MIN_LENGTH:
        username = "user" + username
    return username


def validate_username(username: str) -> str | None:
    """
    Return an error message for an invalid username, or None if it is valid.
    """
    if len(username) < MIN_LENGTH:
        return f"Username must be at least {MIN_LENGTH} characters"
    if len(username) > MAX_LENGTH:
        return f"Username must be at most {MAX_LENGTH} characters"
    if not _FORMAT_RE.fullmatch(username):
        return (
            "Username must start and end with a letter or number, and can only "
            "contain letters, numbers, dots, hyphens, and underscores"
        )
    if _CONSECUTIVE_SPECIALS_RE.search(username):
        return "Username cannot have consecutive dots, hyphens, or underscores"
    if username.lower() in RESERVED_USERNAMES:
        return "This username is reserved"
    return None


def username_from_email(email: str) -> str:
    """Derive a display username from the local part of an email address."""
    local = (email or "").split("@", 1)[0].lower()
    local = re.sub(r"[^a-z0-9._-]", ".", local)
    local = re.sub(r"\.+", ".", local).strip(".")
    return local or "user"
