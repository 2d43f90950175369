"""
Game Service
The per-session state machine: guesses, wins, losses, timers and surrender
"""

import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Callable

from .clue_service import generate_recap, get_definition, get_related_words
from .scoring_service import (
    SCORE_FALLBACK,
    Temperature,
    normalize_word,
    score_similarity,
    temperature_for,
)
from .word_service import DEFAULT_LANGUAGE, LANGUAGE_CODES, daily_seed, obtain_target
from ..config import SURRENDER_WINDOW_SECONDS, TUTORIAL_WORD, FALLBACK_WORD
from ..errors import DailyAlreadyPlayed, InvalidParameters

MODES = ("daily", "unlimited", "blitz", "party", "tutorial", "challenge")

RECAP_FALLBACK = "Well done!"
DEFINITION_FALLBACK = "Definition unavailable."


class SessionStatus(str, Enum):
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class Guess:
    word: str
    score: int
    rank: Optional[int]
    temperature: Temperature
    timestamp: float
    player: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "score": self.score,
            "rank": self.rank,
            "temperature": self.temperature.value,
            "timestamp": self.timestamp,
            "player": self.player,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Guess":
        return cls(
            word=data["word"],
            score=int(data["score"]),
            rank=data.get("rank"),
            temperature=Temperature(data["temperature"]),
            timestamp=float(data["timestamp"]),
            player=data.get("player"),
        )


@dataclass(frozen=True)
class HintItem:
    text: str
    kind: str

    def to_dict(self) -> dict:
        return {"text": self.text, "kind": self.kind}


# ============== TIMERS ==============

class BlitzTimer:
    """One-second countdown for Blitz mode. Once cancelled it never moves again."""

    def __init__(self, duration: int, time_left: Optional[int] = None, cancelled: bool = False):
        self.duration = duration
        self.time_left = duration if time_left is None else time_left
        self.cancelled = cancelled

    @property
    def running(self) -> bool:
        return not self.cancelled and self.time_left > 0

    def tick(self) -> bool:
        """Advance one second. Returns True on the tick that reaches zero."""
        if not self.running:
            return False
        self.time_left -= 1
        return self.time_left == 0

    def extend(self, seconds: int) -> None:
        if self.running:
            self.time_left += seconds

    def cancel(self) -> None:
        self.cancelled = True

    def to_dict(self) -> dict:
        return {"duration": self.duration, "time_left": self.time_left, "cancelled": self.cancelled}

    @classmethod
    def from_dict(cls, data: dict) -> "BlitzTimer":
        return cls(data["duration"], data["time_left"], data.get("cancelled", False))


class SurrenderConfirm:
    """
    Two-step surrender.

    The first press arms the confirmation until ``now + window``; a
    second press inside the window confirms. A press after the window
    has lapsed just arms it again.
    """

    def __init__(self, window: float = SURRENDER_WINDOW_SECONDS, armed_until: Optional[float] = None):
        self.window = window
        self.armed_until = armed_until

    def is_armed(self, now: float) -> bool:
        return self.armed_until is not None and now <= self.armed_until

    def press(self, now: float) -> bool:
        """Returns True when this press confirms the surrender."""
        if self.is_armed(now):
            self.armed_until = None
            return True
        self.armed_until = now + self.window
        return False

    def reset(self) -> None:
        self.armed_until = None


# ============== PARAMETERS ==============

def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class SessionParams:
    """Entry parameters for a session, as they arrive on the query string or body."""
    mode: str = "unlimited"
    language: str = DEFAULT_LANGUAGE
    category: Optional[str] = None
    topic: Optional[str] = None
    date: Optional[str] = None
    challenge: Optional[str] = None
    players: Optional[int] = None
    teams: bool = False
    word: Optional[str] = None
    names: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SessionParams":
        data = data or {}
        mode = str(data.get("mode") or "unlimited").strip().lower()
        if mode not in MODES:
            raise InvalidParameters(f"Unknown mode: {mode}")

        language = data.get("language") or DEFAULT_LANGUAGE
        if language not in LANGUAGE_CODES:
            raise InvalidParameters(f"Unsupported language: {language}")

        players = data.get("players")
        if players not in (None, ""):
            try:
                players = int(players)
            except (TypeError, ValueError):
                raise InvalidParameters("players must be a number")
        else:
            players = None

        names = data.get("names") or []
        if isinstance(names, str):
            names = [n.strip() for n in names.split(",")]
        names = [str(n).strip() for n in names if str(n).strip()]

        if mode == "challenge" and not data.get("challenge"):
            raise InvalidParameters("Challenge mode needs a challenge id")

        return cls(
            mode=mode,
            language=language,
            category=data.get("category") or None,
            topic=data.get("topic") or None,
            date=data.get("date") or None,
            challenge=data.get("challenge") or None,
            players=players,
            teams=_parse_bool(data.get("teams", False)),
            word=data.get("word") or None,
            names=names,
        )


@dataclass
class SubmitResult:
    """What happened to a submitted guess."""
    outcome: str
    guess: Optional[Guess] = None

    @property
    def accepted(self) -> bool:
        return self.outcome in ("scored", "won")

    def to_dict(self) -> dict:
        return {"outcome": self.outcome, "guess": self.guess.to_dict() if self.guess else None}


# ============== SESSION ==============

class GameSession:
    """
    One player's game from the first guess to a terminal status.

    ``status`` only ever moves away from playing, ``best_score`` and
    ``revealed_letters`` only grow, and ``guesses`` is an append-only log
    in submission order.
    """

    def __init__(
        self,
        target_word: str,
        profile,
        mode: str = "unlimited",
        language: str = DEFAULT_LANGUAGE,
        *,
        session_id: Optional[str] = None,
        seed: Optional[str] = None,
        category: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.id = session_id or secrets.token_hex(8)
        self.target_word = normalize_word(target_word)
        self.profile = profile
        self.mode = mode
        self.language = language
        self.seed = seed
        self.category = category
        self.clock = clock

        self.guesses: List[Guess] = []
        self.status = SessionStatus.PLAYING
        self.best_score = 0
        self.hints: List[HintItem] = []
        self.revealed_letters = 0
        self.recap: Optional[str] = None
        self.related_words: List[str] = []
        self.definition: Optional[str] = None
        self.show_tutorial = False

        self.timer: Optional[BlitzTimer] = None
        self.clock_anchor: Optional[float] = None
        self.surrender_confirm = SurrenderConfirm()
        self.party = None
        self.challenge = None
        self.submitting = False

    @property
    def is_playing(self) -> bool:
        return self.status == SessionStatus.PLAYING

    # ============== GUESSES ==============

    def submit_guess(self, text: str) -> SubmitResult:
        """
        Score a guess and apply it to the session.

        Empty, duplicate and late guesses are no-ops reported through
        the result outcome; none of them reach the oracle. In party mode
        nothing is accepted until the next player has taken the device.
        """
        if self.submitting:
            return SubmitResult("busy")
        if not self.is_playing:
            return SubmitResult("not_playing")
        if self.party and self.party.awaiting_handoff:
            return SubmitResult("awaiting_handoff")

        word = normalize_word(text)
        if not word:
            return SubmitResult("empty")
        if any(g.word == word for g in self.guesses):
            return SubmitResult("duplicate")

        self.submitting = True
        try:
            result = score_similarity(self.target_word, word, self.language)
            if not result.ok:
                print(f"[GAME] Scoring fallback used for session {self.id}")
            score = result.unwrap_or(SCORE_FALLBACK)
            # The clock may have run out while the oracle was thinking
            if self.timer is not None:
                self.advance_clock(self.clock())
        finally:
            self.submitting = False

        if not self.is_playing:
            return SubmitResult("discarded")

        guess = Guess(
            word=word,
            score=score.score,
            rank=score.rank,
            temperature=temperature_for(score.score),
            timestamp=self.clock(),
            player=self.party.current_name if self.party else None,
        )
        self.guesses.append(guess)
        self.best_score = max(self.best_score, guess.score)

        if guess.score == 100:
            self.status = SessionStatus.WON
            self._on_win()
            outcome = "won"
        else:
            if guess.temperature == Temperature.BURNING:
                self.profile.update_mission_progress("GET_BURNING", 1)
            if self.party:
                self.party.advance()
            outcome = "scored"

        if self.challenge:
            self.challenge.push_progress()
        return SubmitResult(outcome, guess)

    def sorted_guesses(self) -> List[Guess]:
        """Guesses best first, newest first among equal scores. The log itself is untouched."""
        return sorted(self.guesses, key=lambda g: (-g.score, -g.timestamp))

    # ============== TERMINAL TRANSITIONS ==============

    def _stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.profile.update_mission_progress("PLAY_BLITZ", 1)
        self.surrender_confirm.reset()

    def _reveal_word_details(self) -> None:
        """Related words and a definition, shown once the word is revealed."""
        self.related_words = get_related_words(self.target_word, self.language).unwrap_or([])
        self.definition = get_definition(self.target_word, self.language).unwrap_or(DEFINITION_FALLBACK)

    def _on_win(self) -> None:
        self._stop_timer()
        if self.timer is not None:
            self.profile.record_blitz_score(self.timer.time_left)
        self.profile.register_win(self.target_word, len(self.guesses), self.mode, self.seed)
        self.profile.add_coins(self.profile.win_coin_reward())
        if self.mode == "tutorial":
            self.profile.complete_tutorial()
        self.profile.update_mission_progress("WIN_GAME", 1)

        recap = generate_recap(self.target_word, self.guesses, self.language)
        if not recap.ok:
            print(f"[GAME] Recap fallback used for session {self.id}")
        self.recap = recap.unwrap_or(RECAP_FALLBACK)
        self._reveal_word_details()
        print(f"[GAME] Session {self.id} won in {len(self.guesses)} guesses")

    def _on_loss(self) -> None:
        self.status = SessionStatus.LOST
        self._stop_timer()
        self._reveal_word_details()
        print(f"[GAME] Session {self.id} lost")

    def surrender(self, now: Optional[float] = None) -> str:
        """
        Press the surrender button.

        Returns "armed" for the first press, "surrendered" once confirmed,
        or "not_playing" when the game is already over. In a challenge the
        surrender is pushed to the shared record and the local status is
        settled by the winner resolution; if that push fails the button
        stays armed and "armed" is returned so the player can retry.
        """
        if not self.is_playing:
            return "not_playing"
        now = self.clock() if now is None else now
        if not self.surrender_confirm.press(now):
            return "armed"

        if self.mode == "tutorial":
            self.profile.complete_tutorial()
            self._on_loss()
        elif self.challenge:
            if not self.challenge.surrender(now):
                self.surrender_confirm.press(now)
                return "armed"
        else:
            self._on_loss()
        return "surrendered"

    def settle_challenge(self, won: bool) -> None:
        """Apply a challenge result decided by the shared record."""
        if won or not self.is_playing:
            return
        self._on_loss()

    # ============== BLITZ CLOCK ==============

    def tick(self) -> None:
        """Advance the Blitz countdown by one second."""
        if not self.is_playing or self.timer is None:
            return
        if self.timer.tick():
            print(f"[GAME] Session {self.id} ran out of time")
            self._on_loss()

    def advance_clock(self, now: float) -> None:
        """Apply every whole second elapsed since the last call."""
        if self.timer is None:
            return
        if self.clock_anchor is None:
            self.clock_anchor = now
            return
        elapsed = int(now - self.clock_anchor)
        for _ in range(max(0, elapsed)):
            if not self.is_playing:
                break
            self.tick()
        if elapsed > 0:
            self.clock_anchor += elapsed

    def extend_timer(self, seconds: int) -> None:
        if self.timer is not None:
            self.timer.extend(seconds)

    def close(self) -> None:
        """Abandon the session: stop the clock and drop any challenge feed."""
        if self.timer is not None:
            self.timer.cancel()
        if self.challenge:
            self.challenge.close()

    # ============== CLUES ==============

    def add_hint(self, text: str, kind: str) -> HintItem:
        hint = HintItem(text, kind)
        self.hints.append(hint)
        return hint

    def reveal_letter(self) -> int:
        self.revealed_letters = min(len(self.target_word), self.revealed_letters + 1)
        return self.revealed_letters

    def masked_word(self) -> str:
        """Render the revealed prefix, e.g. ``A P _ _ _``."""
        return " ".join(
            ch.upper() if i < self.revealed_letters else "_"
            for i, ch in enumerate(self.target_word)
        )

    # ============== VIEWS & STORAGE ==============

    def view(self, reveal: bool = False) -> dict:
        """Public view of the session. The target stays hidden while playing."""
        data = {
            "id": self.id,
            "mode": self.mode,
            "language": self.language,
            "status": self.status.value,
            "guesses": [g.to_dict() for g in self.guesses],
            "sorted_guesses": [g.to_dict() for g in self.sorted_guesses()],
            "best_score": self.best_score,
            "hints": [h.to_dict() for h in self.hints],
            "revealed_letters": self.revealed_letters,
            "masked_word": self.masked_word(),
            "word_length": len(self.target_word),
            "show_tutorial": self.show_tutorial,
            "time_left": self.timer.time_left if self.timer else None,
            "surrender_armed": self.surrender_confirm.is_armed(self.clock()),
            "party": self.party.view() if self.party else None,
            "challenge": self.challenge.view() if self.challenge else None,
        }
        if reveal or not self.is_playing:
            data["target_word"] = self.target_word
            data["recap"] = self.recap
            data["related_words"] = self.related_words
            data["definition"] = self.definition
        return data

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "target_word": self.target_word,
            "mode": self.mode,
            "language": self.language,
            "seed": self.seed,
            "category": self.category,
            "status": self.status.value,
            "guesses": [g.to_dict() for g in self.guesses],
            "best_score": self.best_score,
            "hints": [h.to_dict() for h in self.hints],
            "revealed_letters": self.revealed_letters,
            "recap": self.recap,
            "related_words": self.related_words,
            "definition": self.definition,
            "show_tutorial": self.show_tutorial,
            "timer": self.timer.to_dict() if self.timer else None,
            "clock_anchor": self.clock_anchor,
            "surrender_armed_until": self.surrender_confirm.armed_until,
            "party": self.party.to_dict() if self.party else None,
            "challenge": self.challenge.to_dict() if self.challenge else None,
        }

    @classmethod
    def from_dict(cls, data: dict, profile, clock: Callable[[], float] = time.time) -> "GameSession":
        session = cls(
            data["target_word"],
            profile,
            data.get("mode", "unlimited"),
            data.get("language", DEFAULT_LANGUAGE),
            session_id=data["id"],
            seed=data.get("seed"),
            category=data.get("category"),
            clock=clock,
        )
        session.status = SessionStatus(data.get("status", "playing"))
        session.guesses = [Guess.from_dict(g) for g in data.get("guesses", [])]
        session.best_score = int(data.get("best_score", 0))
        session.hints = [HintItem(h["text"], h["kind"]) for h in data.get("hints", [])]
        session.revealed_letters = int(data.get("revealed_letters", 0))
        session.recap = data.get("recap")
        session.related_words = list(data.get("related_words") or [])
        session.definition = data.get("definition")
        session.show_tutorial = bool(data.get("show_tutorial"))
        if data.get("timer"):
            session.timer = BlitzTimer.from_dict(data["timer"])
        session.clock_anchor = data.get("clock_anchor")
        session.surrender_confirm.armed_until = data.get("surrender_armed_until")
        if data.get("party"):
            from .party_service import PartySequencer
            session.party = PartySequencer.from_dict(data["party"])
        if data.get("challenge"):
            from .challenge_service import ChallengeSync
            session.challenge = ChallengeSync.from_dict(data["challenge"], session)
        return session


# ============== INITIALIZE ==============

def start_session(
    params: SessionParams,
    profile,
    *,
    clock: Callable[[], float] = time.time,
    username: Optional[str] = None,
) -> GameSession:
    """
    Create a session in the playing state.

    Raises:
        DailyAlreadyPlayed: today's daily puzzle is already solved
        ChallengeNotFound: the bound challenge does not exist
        InvalidParameters: the shared word or parameters are unusable
    """
    seed = None
    if params.mode == "daily":
        seed = params.date or daily_seed()
        if profile.has_completed_daily(seed):
            raise DailyAlreadyPlayed()

    if params.mode == "tutorial":
        word = TUTORIAL_WORD
    else:
        result = obtain_target(
            params.mode,
            params.language,
            category=params.category,
            topic=params.topic,
            seed=seed,
            preset=params.word,
            challenge_id=params.challenge if params.mode == "challenge" else None,
        )
        if not result.ok:
            print(f"[GAME] Target word fallback used ({params.mode})")
        word = result.unwrap_or(FALLBACK_WORD)

    session = GameSession(
        word,
        profile,
        params.mode,
        params.language,
        seed=seed,
        category=params.topic or params.category,
        clock=clock,
    )

    if params.mode == "tutorial":
        session.show_tutorial = not profile.tutorial_completed
    elif params.mode == "blitz":
        session.timer = BlitzTimer(profile.blitz_start_duration())
        session.clock_anchor = clock()
    elif params.mode == "party":
        from .party_service import PartySequencer
        session.party = PartySequencer.from_params(params.players, params.teams, params.word, params.names)
    elif params.mode == "challenge":
        from .challenge_service import ChallengeSync
        session.challenge = ChallengeSync.open(params.challenge, username or profile.username, session)
        session.challenge.accept()

    print(f"[GAME] Started {params.mode} session {session.id}")
    return session
