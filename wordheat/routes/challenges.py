"""
Challenge Routes
Creating, inspecting, accepting and polling head-to-head challenges
"""

from typing import Tuple, Any, Optional, Dict

from ..data.challenge_repository import get_challenge_version
from ..data.profile_repository import get_profile
from ..errors import WordHeatError, InvalidParameters
from ..security.validators import sanitize_challenge_id, sanitize_username
from ..services.challenge_service import ChallengeSync, create_challenge, get_challenge
from ..services.word_service import DEFAULT_LANGUAGE, LANGUAGE_CODES


def _challenge_id(raw: str) -> str:
    challenge_id = sanitize_challenge_id(raw)
    if not challenge_id:
        raise InvalidParameters("Invalid challenge id format")
    return challenge_id


def handle_challenge_routes(
    method: str,
    path: str,
    body: Dict[str, Any],
    query: Dict[str, str],
    username: Optional[str],
) -> Optional[Tuple[int, Any]]:
    """
    Route handler for challenge endpoints. Every endpoint needs a signed-in player.

    Returns:
        Tuple of (status_code, response_body) or None if not handled
    """
    if not path.startswith("/api/challenges"):
        return None
    if not username:
        return 401, {"detail": "Sign in to play challenges"}

    try:
        # POST /api/challenges - Create a challenge
        if path == "/api/challenges" and method == "POST":
            opponent = sanitize_username(body.get("opponent"))
            if not opponent:
                return 400, {"detail": "Invalid opponent name"}
            if not get_profile(opponent):
                return 404, {"detail": "Player not found"}
            language = body.get("language") or DEFAULT_LANGUAGE
            if language not in LANGUAGE_CODES:
                return 400, {"detail": f"Unsupported language: {language}"}
            challenge = create_challenge(username, opponent, word=body.get("word") or None, language=language)
            return 200, challenge.public_view(username)

        parts = path.split("/")
        if len(parts) < 4:
            return None
        challenge_id = _challenge_id(parts[3])
        action = parts[4] if len(parts) > 4 else None

        # GET /api/challenges/{id}/poll?version=n - Cheap change check
        if action == "poll" and method == "GET":
            try:
                since = int(query.get("version", 0))
            except (TypeError, ValueError):
                return 400, {"detail": "version must be a number"}
            version = get_challenge_version(challenge_id)
            if version == 0:
                return 404, {"detail": "Challenge not found"}
            if version <= since:
                return 200, {"changed": False, "version": version}
            challenge = get_challenge(challenge_id)
            if not challenge.party_of(username):
                return 403, {"detail": "You are not part of this challenge"}
            return 200, {"changed": True, "version": challenge.version,
                         "challenge": challenge.public_view(username)}

        challenge = get_challenge(challenge_id)
        if not challenge.party_of(username):
            return 403, {"detail": "You are not part of this challenge"}

        # GET /api/challenges/{id}
        if action is None and method == "GET":
            return 200, challenge.public_view(username)

        # POST /api/challenges/{id}/accept
        if action == "accept" and method == "POST":
            sync = ChallengeSync(challenge, username)
            accepted = sync.accept()
            return 200, {"accepted": accepted, "challenge": sync.mirror.public_view(username)}

        return None

    except WordHeatError as e:
        return e.status_code, {"detail": e.detail}
