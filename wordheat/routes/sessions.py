"""
Session Routes
Game session lifecycle: start, guess, clues, surrender and leave
"""

import time
from typing import Tuple, Any, Optional, Dict, Callable

from ..data.session_repository import (
    save_session,
    load_session,
    delete_session,
    acquire_submit_lock,
    release_submit_lock,
)
from ..errors import WordHeatError, SessionNotFound, InvalidParameters, NotApplicableInMode
from ..security.validators import (
    sanitize_session_id,
    sanitize_guess,
    sanitize_topic,
    sanitize_preset_word,
    sanitize_challenge_id,
    sanitize_player_names,
)
from ..services.economy_service import purchase_hint, use_powerup
from ..services.game_service import GameSession, SessionParams, start_session
from ..services.profile_service import load_or_create_profile


# ============== HELPERS ==============

BUSY_DETAIL = "Another request for this game is still running"


def _store(session: GameSession, owner: Optional[str]) -> None:
    data = session.to_dict()
    data["owner"] = owner
    save_session(session.id, data)


def _clean_session_id(session_id: str) -> str:
    clean_id = sanitize_session_id(session_id)
    if not clean_id:
        raise InvalidParameters("Invalid session id format")
    return clean_id


def _restore(session_id: str, username: Optional[str], clock: Callable[[], float]) -> Tuple[GameSession, dict]:
    """Load a session for its owner exactly as stored."""
    clean_id = _clean_session_id(session_id)
    data = load_session(clean_id)
    if not data or (data.get("owner") or None) != (username or None):
        raise SessionNotFound()
    stored = {k: v for k, v in data.items() if k != "owner"}
    return GameSession.from_dict(stored, load_or_create_profile(username), clock=clock), stored


def _load(session_id: str, username: Optional[str], clock: Callable[[], float]) -> Tuple[GameSession, bool]:
    """
    Load a session and catch its Blitz clock and challenge record up.

    Only call this while holding the session lock. Returns the session and
    whether catching up changed it.
    """
    session, stored = _restore(session_id, username, clock)
    session.advance_clock(clock())
    if session.challenge:
        session.challenge.refresh()
    return session, session.to_dict() != stored


def _response(session: GameSession, **extra) -> dict:
    events = session.challenge.take_events() if session.challenge else []
    body = {
        "session": session.view(),
        "coins": session.profile.coins,
        "events": [e.to_dict() for e in events],
    }
    body.update(extra)
    return body


def _params_from_body(body: Dict[str, Any]) -> SessionParams:
    raw = dict(body)
    for key in ("category", "topic"):
        if raw.get(key) and not sanitize_topic(raw[key]):
            raise InvalidParameters(f"Invalid {key}")
    if raw.get("word"):
        raw["word"] = sanitize_preset_word(raw["word"])
        if not raw["word"]:
            raise InvalidParameters("Invalid shared word")
    if raw.get("challenge"):
        raw["challenge"] = sanitize_challenge_id(raw["challenge"])
        if not raw["challenge"]:
            raise InvalidParameters("Invalid challenge id format")
    raw["names"] = sanitize_player_names(raw.get("names"))
    return SessionParams.from_dict(raw)


def _locked(
    session_id: str,
    username: Optional[str],
    clock: Callable[[], float],
    action: Callable[[GameSession], Dict[str, Any]],
) -> Tuple[int, Any]:
    """
    Run one state-changing action while holding the per-session lock.

    The session is loaded after the lock is taken and written back before
    it is released, so two requests can never overwrite each other.
    """
    clean_id = _clean_session_id(session_id)
    if not acquire_submit_lock(clean_id):
        return 409, {"detail": BUSY_DETAIL}
    try:
        session, _ = _load(clean_id, username, clock)
        extra = action(session)
        _store(session, username)
        return 200, _response(session, **extra)
    finally:
        release_submit_lock(clean_id)


# ============== ROUTE HANDLERS ==============

def handle_session_routes(
    method: str,
    path: str,
    body: Dict[str, Any],
    username: Optional[str],
    clock: Callable[[], float] = time.time,
) -> Optional[Tuple[int, Any]]:
    """
    Route handler for session endpoints.

    Args:
        method: HTTP method
        path: Request path
        body: Request body
        username: Signed-in player, or None for a guest
        clock: Time source (the wall clock outside tests)

    Returns:
        Tuple of (status_code, response_body) or None if not handled
    """
    if not path.startswith("/api/sessions"):
        return None

    try:
        # POST /api/sessions - Start a session
        if path == "/api/sessions" and method == "POST":
            return _handle_start(body, username, clock)

        parts = path.split("/")
        if len(parts) < 4:
            return None
        session_id = parts[3]
        action = parts[4] if len(parts) > 4 else None

        # GET /api/sessions/{id} - Session view, with any challenge news
        if action is None and method == "GET":
            return _handle_view(session_id, username, clock)

        if method != "POST":
            return None

        if action == "guess":
            return _handle_guess(session_id, body, username, clock)
        if action == "hint":
            kind = str(body.get("kind", "word"))
            return _locked(session_id, username, clock, lambda s: {
                "hint": purchase_hint(s, s.profile, kind).to_dict(),
            })
        if action == "powerup":
            item_id = str(body.get("item_id", ""))
            return _locked(session_id, username, clock, lambda s: {
                "effect": use_powerup(s, s.profile, item_id).to_dict(),
            })
        if action == "surrender":
            return _locked(session_id, username, clock, lambda s: {"surrender": s.surrender()})
        if action == "handoff":
            return _locked(session_id, username, clock, _acknowledge_handoff)
        if action == "leave":
            return _handle_leave(session_id, username, clock)

        return None

    except WordHeatError as e:
        return e.status_code, {"detail": e.detail}


def _handle_start(body: Dict[str, Any], username: Optional[str], clock: Callable[[], float]) -> Tuple[int, Any]:
    params = _params_from_body(body)
    if params.mode == "challenge" and not username:
        return 401, {"detail": "Sign in to play challenges"}
    profile = load_or_create_profile(username)
    session = start_session(params, profile, clock=clock, username=username)
    _store(session, username)
    return 200, _response(session)


def _handle_view(session_id: str, username: Optional[str], clock: Callable[[], float]) -> Tuple[int, Any]:
    """
    Read a session. It is written back only when catching up changed it.

    While another request holds the lock the view is served as stored,
    without catching up, so nothing is applied twice.
    """
    clean_id = _clean_session_id(session_id)
    if not acquire_submit_lock(clean_id):
        session, _ = _restore(clean_id, username, clock)
        return 200, _response(session)
    try:
        session, changed = _load(clean_id, username, clock)
        if changed:
            _store(session, username)
        return 200, _response(session)
    finally:
        release_submit_lock(clean_id)


def _handle_guess(session_id: str, body: Dict[str, Any], username: Optional[str], clock: Callable[[], float]) -> Tuple[int, Any]:
    """Submit a guess while holding the per-session lock."""
    raw = str(body.get("guess") or "").strip()
    word = ""
    if raw:
        word = sanitize_guess(raw)
        if not word:
            raise InvalidParameters("Guesses must be a single word")
    return _locked(session_id, username, clock, lambda s: {"result": s.submit_guess(word).to_dict()})


def _acknowledge_handoff(session: GameSession) -> Dict[str, Any]:
    if not session.party:
        raise NotApplicableInMode("Only used in party mode")
    session.party.acknowledge_handoff()
    return {}


def _handle_leave(session_id: str, username: Optional[str], clock: Callable[[], float]) -> Tuple[int, Any]:
    clean_id = _clean_session_id(session_id)
    if not acquire_submit_lock(clean_id):
        return 409, {"detail": BUSY_DETAIL}
    try:
        session, _ = _load(clean_id, username, clock)
        session.close()
        delete_session(session.id)
        return 200, {"left": True}
    finally:
        release_submit_lock(clean_id)
