"""
Challenge Service
Two-player asynchronous races over a shared challenge record

Each client keeps a local mirror of the record, writes only its own
party's fields, merges remote snapshots in version order and resolves the
winner independently. The winner field is write-once in storage, so both
clients racing to resolve can only ever agree.
"""

import copy
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Union

from .word_service import WORD_PATTERN, DEFAULT_LANGUAGE, encode_preset_word, obtain_target
from ..config import FALLBACK_WORD
from ..data.challenge_repository import (
    PARTIES,
    create_challenge_record,
    load_challenge_record,
    get_challenge_version,
    update_challenge_fields,
    set_winner_once,
)
from ..errors import ChallengeNotFound, InvalidParameters, NotApplicableInMode

# Wire sentinels kept for compatibility with stored records
SURRENDERED_GUESSES = 999
SETTER_GUESSES = 0


# ============== PARTY OUTCOMES ==============

@dataclass(frozen=True)
class NotStarted:
    pass


@dataclass(frozen=True)
class InProgress:
    guesses: int


@dataclass(frozen=True)
class Finished:
    guesses: int


@dataclass(frozen=True)
class Surrendered:
    pass


@dataclass(frozen=True)
class NotParticipating:
    """The setter of a fixed word: finished before the race with no guesses."""


PartyOutcome = Union[NotStarted, InProgress, Finished, Surrendered, NotParticipating]


@dataclass
class PartyState:
    status: str = "waiting"
    guesses: Optional[int] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self.status == "finished"

    @property
    def outcome(self) -> PartyOutcome:
        if self.status == "finished":
            if self.guesses == SURRENDERED_GUESSES:
                return Surrendered()
            if not self.guesses:
                return NotParticipating()
            return Finished(self.guesses)
        if self.status == "playing":
            return InProgress(self.guesses or 0)
        return NotStarted()

    def progress_key(self):
        """Ordering used to make sure a party's own progress never goes backwards."""
        return (1 if self.finished else 0, self.guesses or 0)


@dataclass
class Challenge:
    id: str
    challenger: str
    opponent: str
    word: str
    seed: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    status: str = "pending"
    created_at: Optional[float] = None
    version: int = 0
    winner: Optional[str] = None
    parties: Dict[str, PartyState] = field(default_factory=dict)

    def party_of(self, username: str) -> Optional[str]:
        name = (username or "").lower()
        if name == self.challenger.lower():
            return "challenger"
        if name == self.opponent.lower():
            return "opponent"
        return None

    def username_of(self, party: str) -> str:
        return self.challenger if party == "challenger" else self.opponent

    @classmethod
    def from_record(cls, record: dict) -> "Challenge":
        parties = {
            party: PartyState(
                status=record.get(f"{party}_status") or "waiting",
                guesses=record.get(f"{party}_guesses"),
                started_at=record.get(f"{party}_started_at"),
                finished_at=record.get(f"{party}_finished_at"),
            )
            for party in PARTIES
        }
        return cls(
            id=record["id"],
            challenger=record["challenger"],
            opponent=record["opponent"],
            word=record.get("word") or "",
            seed=record.get("seed"),
            language=record.get("language") or DEFAULT_LANGUAGE,
            status=record.get("status") or "pending",
            created_at=record.get("created_at"),
            version=int(record.get("version") or 0),
            winner=record.get("winner") or None,
            parties=parties,
        )

    def to_record(self) -> dict:
        record = {
            "id": self.id,
            "challenger": self.challenger,
            "opponent": self.opponent,
            "word": self.word,
            "seed": self.seed,
            "language": self.language,
            "status": self.status,
            "created_at": self.created_at,
            "version": self.version,
            "winner": self.winner,
        }
        for party in PARTIES:
            state = self.parties[party]
            record[f"{party}_status"] = state.status
            record[f"{party}_guesses"] = state.guesses
            record[f"{party}_started_at"] = state.started_at
            record[f"{party}_finished_at"] = state.finished_at
        return record

    def public_view(self, username: Optional[str] = None) -> dict:
        """Record without the secret word, unless the challenge is over."""
        record = self.to_record()
        if self.status != "completed" and self.party_of(username) != "challenger":
            record.pop("word")
        return record


@dataclass
class ChallengeEvent:
    """Something a player should be told about, raised once."""
    kind: str
    winner: Optional[str] = None
    surrendered: bool = False
    won: Optional[bool] = None

    def to_dict(self) -> dict:
        return {"kind": self.kind, "winner": self.winner, "surrendered": self.surrendered, "won": self.won}


# ============== CREATION ==============

def create_challenge(
    challenger: str,
    opponent: str,
    *,
    word: Optional[str] = None,
    language: str = DEFAULT_LANGUAGE,
) -> Challenge:
    """
    Create a challenge record.

    With ``word`` the challenger is the setter: the word is fixed, and the
    challenger is marked finished with no guesses so that only the
    opponent races.
    """
    if not challenger or not opponent:
        raise InvalidParameters("A challenge needs two players")
    if challenger.lower() == opponent.lower():
        raise InvalidParameters("You can't challenge yourself")

    now = time.time()
    fields = {
        "challenger": challenger,
        "opponent": opponent,
        "language": language,
        "opponent_status": "invited",
    }

    if word:
        word = word.strip().lower()
        if not WORD_PATTERN.match(word):
            raise InvalidParameters("The secret word must be a single word")
        fields.update({
            "word": word,
            "seed": encode_preset_word(word),
            "challenger_status": "finished",
            "challenger_guesses": SETTER_GUESSES,
            "challenger_finished_at": now,
        })
    else:
        result = obtain_target("unlimited", language)
        if not result.ok:
            print("[CHALLENGE] Target word fallback used")
        fields.update({
            "word": result.unwrap_or(FALLBACK_WORD),
            "seed": str(int(now * 1000)),
            "challenger_status": "waiting",
        })

    record = create_challenge_record(fields)
    if not record:
        raise ChallengeNotFound("Could not create challenge")
    print(f"[CHALLENGE] Created {record['id']} ({'setter' if word else 'race'})")
    return Challenge.from_record(record)


def get_challenge(challenge_id: str) -> Challenge:
    record = load_challenge_record(challenge_id)
    if not record:
        raise ChallengeNotFound()
    return Challenge.from_record(record)


# ============== WINNER RESOLUTION ==============

def _later(a: Optional[float], b: Optional[float]) -> bool:
    """True when ``a`` is strictly later than ``b``; missing times count as latest."""
    a = float("inf") if a is None else a
    b = float("inf") if b is None else b
    return a > b


def resolve_winner(challenge: Challenge) -> Optional[str]:
    """
    Decide the winner from the record alone, or None if it is too early.

    Any client evaluating the same record gets the same answer.

    - A surrendered party loses to the other party straight away.
    - The first party to finish wins outright if the other party had
      already started; otherwise the race was not live and the result
      waits until both have finished.
    - Once both have finished, fewer guesses wins, then the earlier
      finish. Exact ties go to the opponent.
    """
    if challenge.winner:
        return challenge.winner

    c_state = challenge.parties["challenger"]
    o_state = challenge.parties["opponent"]
    c, o = c_state.outcome, o_state.outcome

    # Setter mode: only the solver's result matters
    if isinstance(c, NotParticipating) or isinstance(o, NotParticipating):
        solver, setter = ("opponent", "challenger") if isinstance(c, NotParticipating) else ("challenger", "opponent")
        solver_outcome = o if solver == "opponent" else c
        if isinstance(solver_outcome, Finished):
            return challenge.username_of(solver)
        if isinstance(solver_outcome, Surrendered):
            return challenge.username_of(setter)
        return None

    if not c_state.finished and not o_state.finished:
        return None

    if c_state.finished != o_state.finished:
        done, other = ("challenger", "opponent") if c_state.finished else ("opponent", "challenger")
        done_state, other_state = challenge.parties[done], challenge.parties[other]
        if isinstance(done_state.outcome, Surrendered):
            return challenge.username_of(other)
        race_was_live = (
            other_state.started_at is not None
            and not _later(other_state.started_at, done_state.finished_at)
        )
        return challenge.username_of(done) if race_was_live else None

    # Both finished
    if isinstance(c, Surrendered) and isinstance(o, Surrendered):
        # Whoever held out longer wins
        if _later(c_state.finished_at, o_state.finished_at):
            return challenge.challenger
        return challenge.opponent
    if isinstance(c, Surrendered):
        return challenge.opponent
    if isinstance(o, Surrendered):
        return challenge.challenger

    if c.guesses != o.guesses:
        return challenge.challenger if c.guesses < o.guesses else challenge.opponent
    if _later(o_state.finished_at, c_state.finished_at):
        return challenge.challenger
    return challenge.opponent


# ============== FEED ==============

class ChallengeFeed:
    """
    Queue of record snapshots waiting to be merged.

    Snapshots arrive either from ``poll`` (the stored version moved past
    the last one seen) or from ``publish`` (another component in the same
    process just wrote the record).
    """

    def __init__(self, challenge_id: str, since_version: int = 0):
        self.challenge_id = challenge_id
        self.since_version = since_version
        self.closed = False
        self._queue = deque()

    def publish(self, snapshot: Challenge) -> None:
        if self.closed:
            return
        self._queue.append(snapshot)
        self.since_version = max(self.since_version, snapshot.version)

    def poll(self) -> bool:
        """Queue the stored record if it changed. Returns True if something was queued."""
        if self.closed:
            return False
        if get_challenge_version(self.challenge_id) <= self.since_version:
            return False
        record = load_challenge_record(self.challenge_id)
        if not record:
            return False
        self.publish(Challenge.from_record(record))
        return True

    def drain(self):
        while self._queue:
            yield self._queue.popleft()

    def close(self) -> None:
        self.closed = True
        self._queue.clear()


# ============== SYNC ==============

class ChallengeSync:
    """One player's view of a challenge, bound to their game session."""

    def __init__(self, challenge: Challenge, username: str, session=None,
                 feed: Optional[ChallengeFeed] = None, result_seen: bool = False):
        party = challenge.party_of(username)
        if party is None:
            raise NotApplicableInMode("You are not part of this challenge")
        self.mirror = challenge
        self.username = challenge.username_of(party)
        self.party = party
        self.other = "opponent" if party == "challenger" else "challenger"
        self.session = session
        self.feed = feed or ChallengeFeed(challenge.id, challenge.version)
        self.result_seen = result_seen
        self.closed = False
        self._events: List[ChallengeEvent] = []

    @classmethod
    def open(cls, challenge_id: str, username: str, session=None) -> "ChallengeSync":
        challenge = get_challenge(challenge_id)
        # A result that was settled before this player arrived is not news
        return cls(challenge, username, session, result_seen=bool(challenge.winner))

    @property
    def challenge_id(self) -> str:
        return self.mirror.id

    @property
    def own(self) -> PartyState:
        return self.mirror.parties[self.party]

    def _now(self, now: Optional[float]) -> float:
        if now is not None:
            return now
        return self.session.clock() if self.session is not None else time.time()

    # ============== LOCAL WRITES ==============

    def _write(self, fields: dict) -> bool:
        """Write own-party fields and fold them into the mirror."""
        version = update_challenge_fields(self.challenge_id, fields)
        if version is None:
            print(f"[CHALLENGE] Could not push progress for {self.challenge_id}")
            return False
        for key, value in fields.items():
            if key == "status":
                self.mirror.status = value
                continue
            party, _, attr = key.partition("_")
            setattr(self.mirror.parties[party], attr, value)
        # A gap means someone else wrote in between; leave it for the next poll
        if version == self.mirror.version + 1:
            self.mirror.version = version
            self.feed.since_version = max(self.feed.since_version, version)
        return True

    def accept(self, now: Optional[float] = None) -> bool:
        """The opponent opening a pending challenge accepts it."""
        if self.party != "opponent" or self.mirror.status != "pending" or self.closed:
            return False
        now = self._now(now)
        accepted = self._write({
            "status": "accepted",
            "opponent_status": "playing",
            "opponent_guesses": 0,
            "opponent_started_at": now,
        })
        if accepted:
            print(f"[CHALLENGE] {self.challenge_id} accepted")
        return accepted

    def push_progress(self, now: Optional[float] = None) -> None:
        """Push the local guess count, and the finish if the session was won."""
        if self.closed or self.session is None or self.own.finished:
            return
        now = self._now(now)
        count = len(self.session.guesses)
        p = self.party
        fields = {f"{p}_guesses": count}
        if self.own.started_at is None:
            fields[f"{p}_started_at"] = now

        status = self.session.status.value
        if status == "won":
            fields.update({f"{p}_status": "finished", f"{p}_finished_at": now})
        elif status == "playing":
            fields[f"{p}_status"] = "playing"
        else:
            return

        if self._write(fields):
            self.refresh()

    def surrender(self, now: Optional[float] = None) -> bool:
        """Push a surrender to the shared record; False if it was not written."""
        if self.closed or self.own.finished:
            return False
        now = self._now(now)
        p = self.party
        fields = {
            f"{p}_status": "finished",
            f"{p}_guesses": SURRENDERED_GUESSES,
            f"{p}_finished_at": now,
        }
        if self.own.started_at is None:
            fields[f"{p}_started_at"] = now
        if not self._write(fields):
            return False
        print(f"[CHALLENGE] {self.username} surrendered {self.challenge_id}")
        self.refresh()
        return True

    # ============== REMOTE UPDATES ==============

    def merge_remote(self, snapshot: Challenge) -> List[ChallengeEvent]:
        """
        Fold a remote snapshot into the mirror.

        Stale snapshots (not newer than the mirror) are ignored. Our own
        party's progress and an already-known winner never go backwards.
        """
        if snapshot.id != self.challenge_id or snapshot.version <= self.mirror.version:
            return []

        previous = self.mirror
        merged = copy.deepcopy(snapshot)
        if merged.parties[self.party].progress_key() < previous.parties[self.party].progress_key():
            merged.parties[self.party] = copy.deepcopy(previous.parties[self.party])
        if previous.winner and not merged.winner:
            merged.winner = previous.winner
            merged.status = previous.status
        self.mirror = merged

        events = []
        if self.party == "challenger" and previous.status == "pending" and merged.status != "pending":
            events.append(ChallengeEvent("accepted"))

        before, after = previous.parties[self.other], merged.parties[self.other]
        if not before.finished and after.finished and not isinstance(after.outcome, NotParticipating):
            events.append(ChallengeEvent(
                "opponent_finished",
                surrendered=isinstance(after.outcome, Surrendered),
            ))
        self._events.extend(events)
        return events

    def _merge_queued(self) -> None:
        for snapshot in self.feed.drain():
            self.merge_remote(snapshot)

    def refresh(self) -> None:
        """Pull the stored record if it moved on, merge it and resolve. Events stay queued."""
        if self.closed:
            return
        self.feed.poll()
        self._merge_queued()
        self.resolve()

    def pump(self) -> List[ChallengeEvent]:
        """Merge everything queued on the feed, resolve, and hand back new events."""
        if not self.closed:
            self._merge_queued()
            self.resolve()
        return self.take_events()

    def take_events(self) -> List[ChallengeEvent]:
        events, self._events = self._events, []
        return events

    # ============== RESOLUTION ==============

    def resolve(self) -> Optional[str]:
        """
        Settle the winner if the record allows it.

        Always attempts the write-once winner write; finding a winner
        already stored is success, and the stored value is adopted.
        """
        if self.mirror.winner:
            self._settle(self.mirror.winner)
            return self.mirror.winner

        winner = resolve_winner(self.mirror)
        if winner is None:
            return None

        stored = set_winner_once(self.challenge_id, winner)
        if not stored:
            print(f"[CHALLENGE] Could not store winner for {self.challenge_id}")
            return None
        if stored != winner:
            print(f"[CHALLENGE] Adopted stored winner for {self.challenge_id}")
        self.mirror.winner = stored
        self.mirror.status = "completed"
        self._settle(stored)
        return stored

    def _settle(self, winner: str) -> None:
        if self.result_seen:
            return
        self.result_seen = True
        won = winner.lower() == self.username.lower()
        self._events.append(ChallengeEvent("result", winner=winner, won=won))
        print(f"[CHALLENGE] {self.challenge_id} resolved")
        if self.session is not None:
            self.session.settle_challenge(won)

    def close(self) -> None:
        self.closed = True
        self.feed.close()

    # ============== VIEWS & STORAGE ==============

    def view(self) -> dict:
        own, other = self.mirror.parties[self.party], self.mirror.parties[self.other]
        return {
            "id": self.challenge_id,
            "party": self.party,
            "status": self.mirror.status,
            "winner": self.mirror.winner,
            "version": self.mirror.version,
            "you": {"status": own.status, "guesses": own.guesses},
            "rival": {
                "username": self.mirror.username_of(self.other),
                "status": other.status,
                "guesses": other.guesses,
            },
        }

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "mirror": self.mirror.to_record(),
            "result_seen": self.result_seen,
            "closed": self.closed,
        }

    @classmethod
    def from_dict(cls, data: dict, session=None) -> "ChallengeSync":
        sync = cls(
            Challenge.from_record(data["mirror"]),
            data["username"],
            session,
            result_seen=bool(data.get("result_seen")),
        )
        if data.get("closed"):
            sync.close()
        return sync
