"""
Party Service
Pass-and-play turn order for several players sharing one device
"""

from typing import Optional, List

from ..config import PARTY_MIN_PLAYERS, PARTY_MAX_PLAYERS

TEAM_NAMES = ["Team Red", "Team Blue"]


class PartySequencer:
    """
    Whose turn it is in a party game.

    Players are numbered from 1. In setter mode player 1 chose the word
    and only watches, so player 2 guesses every turn and there is no
    rotation.
    """

    def __init__(self, names: List[str], current: int = 1, setter_mode: bool = False,
                 team_mode: bool = False, awaiting_handoff: bool = True):
        self.names = names
        self.current = current
        self.setter_mode = setter_mode
        self.team_mode = team_mode
        self.awaiting_handoff = awaiting_handoff

    @classmethod
    def from_params(cls, players: Optional[int], teams: bool = False,
                    word: Optional[str] = None, names: Optional[List[str]] = None) -> "PartySequencer":
        if teams:
            defaults = list(TEAM_NAMES)
        else:
            total = max(PARTY_MIN_PLAYERS, min(PARTY_MAX_PLAYERS, players or PARTY_MIN_PLAYERS))
            defaults = [f"Player {i + 1}" for i in range(total)]

        # Custom names replace the defaults position by position
        names = names or []
        resolved = [names[i] if i < len(names) and names[i] else default
                    for i, default in enumerate(defaults)]

        setter_mode = bool(word)
        return cls(resolved, current=2 if setter_mode else 1,
                   setter_mode=setter_mode, team_mode=teams)

    @property
    def total(self) -> int:
        return len(self.names)

    @property
    def current_name(self) -> str:
        return self.names[self.current - 1]

    def advance(self) -> int:
        """Pass the turn after a guess that did not win."""
        if self.setter_mode:
            return self.current
        self.current = 1 if self.current >= self.total else self.current + 1
        self.awaiting_handoff = True
        return self.current

    def acknowledge_handoff(self) -> None:
        self.awaiting_handoff = False

    def view(self) -> dict:
        return {
            "names": self.names,
            "current": self.current,
            "current_name": self.current_name,
            "setter_mode": self.setter_mode,
            "team_mode": self.team_mode,
            "awaiting_handoff": self.awaiting_handoff,
        }

    def to_dict(self) -> dict:
        return self.view()

    @classmethod
    def from_dict(cls, data: dict) -> "PartySequencer":
        return cls(
            list(data["names"]),
            current=int(data.get("current", 1)),
            setter_mode=bool(data.get("setter_mode")),
            team_mode=bool(data.get("team_mode")),
            awaiting_handoff=bool(data.get("awaiting_handoff")),
        )
