"""
Centralized Input Validation Module

Validation and sanitization for everything that arrives from a client:
guesses, ids, party names and free-text topics.
"""

import re
import html
from typing import Optional, Pattern, Callable, Any, Tuple, List
from dataclasses import dataclass


@dataclass
class ValidationResult:
    """Result of a validation operation."""
    is_valid: bool
    value: Optional[str]
    error: Optional[str] = None


class Validators:
    """
    Centralized validation patterns and methods.

    All patterns are compiled once.
    """

    # Session and challenge ids: 16 lowercase hex characters
    SESSION_ID = re.compile(r'^[a-f0-9]{16}$')
    CHALLENGE_ID = re.compile(r'^[a-f0-9]{16}$')

    # Username: 3-20 alphanumeric or underscore
    USERNAME = re.compile(r'^[a-zA-Z0-9_]{3,20}$')

    # Party player name: 1-20 alphanumeric, underscore, space
    PLAYER_NAME = re.compile(r'^[a-zA-Z0-9_ ]{1,20}$')

    # Guess: letters only, any alphabet
    GUESS = re.compile(r'^[^\W\d_]{1,30}$')

    # Topic: letters, digits, spaces and common punctuation
    TOPIC = re.compile(r"^[\w &\-']{1,50}$")

    # Shared word in an invite link: base64 or base64url
    PRESET_WORD = re.compile(r'^[A-Za-z0-9+/_=-]{2,64}$')

    RESERVED_NAMES = frozenset(['admin', 'system', 'wordheat', 'moderator', 'mod', 'bot'])

    @classmethod
    def validate(
        cls,
        value: Any,
        pattern: Pattern,
        transform: Optional[Callable[[str], str]] = None,
        max_length: Optional[int] = None,
        min_length: int = 1,
    ) -> ValidationResult:
        """
        Validate and optionally transform a value.

        Args:
            value: Value to validate
            pattern: Compiled regex pattern
            transform: Optional transformation function (e.g., str.lower)
            max_length: Maximum allowed length
            min_length: Minimum required length

        Returns:
            ValidationResult with is_valid, sanitized value, and error message
        """
        if value is None:
            return ValidationResult(False, None, "Value is required")

        if not isinstance(value, str):
            value = str(value)

        value = value.strip()

        if len(value) < min_length:
            return ValidationResult(False, None, f"Value must be at least {min_length} characters")

        if max_length and len(value) > max_length:
            return ValidationResult(False, None, f"Value must be at most {max_length} characters")

        if transform:
            value = transform(value)

        if not pattern.match(value):
            return ValidationResult(False, None, "Value contains invalid characters")

        return ValidationResult(True, value, None)


def sanitize_session_id(session_id: Any) -> Optional[str]:
    """Returns the lowercase session id or None if malformed."""
    result = Validators.validate(session_id, Validators.SESSION_ID, transform=str.lower,
                                 max_length=16, min_length=16)
    return result.value if result.is_valid else None


def sanitize_challenge_id(challenge_id: Any) -> Optional[str]:
    """Returns the lowercase challenge id or None if malformed."""
    result = Validators.validate(challenge_id, Validators.CHALLENGE_ID, transform=str.lower,
                                 max_length=16, min_length=16)
    return result.value if result.is_valid else None


def sanitize_username(username: Any) -> Optional[str]:
    result = Validators.validate(username, Validators.USERNAME, max_length=20, min_length=3)
    if not result.is_valid or result.value is None:
        return None
    if result.value.lower() in Validators.RESERVED_NAMES:
        return None
    return result.value


def sanitize_player_name(name: Any) -> Optional[str]:
    """
    Sanitize a party player name.

    Returns HTML-escaped name or None if invalid.
    """
    result = Validators.validate(name, Validators.PLAYER_NAME, max_length=20, min_length=1)
    if not result.is_valid or result.value is None:
        return None
    return html.escape(result.value)


def sanitize_player_names(names: Any) -> List[str]:
    """Party names from a list or a comma-separated string; bad entries become blanks."""
    if names is None:
        return []
    if isinstance(names, str):
        names = names.split(",")
    if not isinstance(names, list):
        return []
    return [sanitize_player_name(n) or "" for n in names[:4]]


def sanitize_guess(word: Any) -> Optional[str]:
    """
    Sanitize a guess.

    Returns the lowercase word or None if invalid. Empty input is invalid
    here; the session treats it as a no-op before this is reached.
    """
    result = Validators.validate(word, Validators.GUESS, transform=str.lower,
                                 max_length=30, min_length=1)
    return result.value if result.is_valid else None


def sanitize_topic(topic: Any) -> Optional[str]:
    if topic in (None, ""):
        return None
    result = Validators.validate(topic, Validators.TOPIC, max_length=50, min_length=1)
    return result.value if result.is_valid else None


def sanitize_preset_word(encoded: Any) -> Optional[str]:
    if encoded in (None, ""):
        return None
    result = Validators.validate(encoded, Validators.PRESET_WORD, max_length=64, min_length=2)
    return result.value if result.is_valid else None


def validate_request_body_size(
    content_length: int,
    max_size: int = 10240,  # 10KB default
) -> Tuple[bool, str]:
    """
    Validate request body size.

    Args:
        content_length: Content-Length header value
        max_size: Maximum allowed size in bytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    if content_length <= 0:
        return True, ""

    if content_length > max_size:
        return False, f"Request body too large. Maximum size is {max_size} bytes."

    return True, ""


# Request body size limits by endpoint type
REQUEST_SIZE_LIMITS = {
    "general": 4096,
    "game_action": 1024,
}


def get_request_size_limit(endpoint_type: str) -> int:
    """Get the request body size limit for an endpoint type."""
    return REQUEST_SIZE_LIMITS.get(endpoint_type, REQUEST_SIZE_LIMITS["general"])
