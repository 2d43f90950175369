#!/usr/bin/env python3
"""
Challenge Simulation Script for WordHeat

Plays both sides of a head-to-head challenge against a running API, so
the winner resolution can be watched end to end from one machine.

HOW A CHALLENGE IS SETTLED:
===========================

1. The challenger creates the challenge; the opponent accepts by opening
   a challenge session.
2. Each client pushes only its own guess count and finish time.
3. A surrender loses straight away.
4. If the other player had already started, the first to finish wins.
   Otherwise the result waits for both, and fewer guesses wins.
5. The winner is written once; both clients must report the same one.

USAGE:
======
# Race: both players start together, challenger needs 7 guesses, opponent 5
python simulate_challenge.py race --challenger alice --opponent bob \\
    --challenger-guesses 7 --opponent-guesses 5

# Asynchronous: opponent only starts after the challenger has finished
python simulate_challenge.py race --challenger alice --opponent bob --stagger

# Opponent gives up halfway
python simulate_challenge.py surrender --challenger alice --opponent bob

Tokens are minted locally with JWT_SECRET, which must match the server's.
"""

import argparse
import asyncio
import json
import sys
import time
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

import aiohttp

from wordheat.config import POLL_INTERVAL_SECONDS
from wordheat.security.auth import create_jwt_token


DEFAULT_API_BASE = "http://localhost:3000"

# Words that are very unlikely to be the secret
FILLER_WORDS = [
    "granite", "umbrella", "saxophone", "volcano", "pillow", "bicycle",
    "lantern", "cactus", "glacier", "trumpet", "hammock", "satellite",
]


@dataclass
class SimulatedPlayer:
    """One side of the challenge."""
    username: str
    token: str
    session_id: Optional[str] = None
    guesses: int = 0
    events: List[dict] = field(default_factory=list)
    result: Optional[dict] = None


async def api_call(
    session: aiohttp.ClientSession,
    api_base: str,
    endpoint: str,
    player: SimulatedPlayer,
    method: str = "GET",
    data: Optional[Dict] = None,
) -> Dict[str, Any]:
    """Make an API call as a player."""
    url = f"{api_base}{endpoint}"
    headers = {"Authorization": f"Bearer {player.token}"}

    try:
        if method == "GET":
            async with session.get(url, headers=headers) as resp:
                return await resp.json()
        async with session.post(url, json=data or {}, headers=headers) as resp:
            return await resp.json()
    except aiohttp.ClientError as e:
        return {"error": str(e)}
    except json.JSONDecodeError:
        return {"error": "Invalid JSON response"}


def _record_events(player: SimulatedPlayer, response: Dict[str, Any]) -> None:
    for event in response.get("events", []):
        player.events.append(event)
        if event["kind"] == "result":
            player.result = event
            outcome = "WON" if event["won"] else "lost"
            print(f"  🏁 {player.username} sees result: winner={event['winner']} ({outcome})")
        elif event["kind"] == "opponent_finished":
            how = "surrendered" if event["surrendered"] else "solved it"
            print(f"  📣 {player.username}: rival {how}")
        elif event["kind"] == "accepted":
            print(f"  📣 {player.username}: challenge accepted")


async def start_session(session, api_base, player: SimulatedPlayer, challenge_id: str) -> bool:
    result = await api_call(session, api_base, "/api/sessions", player, "POST",
                            {"mode": "challenge", "challenge": challenge_id})
    if "session" not in result:
        print(f"  ✗ {player.username} could not start: {result}")
        return False
    player.session_id = result["session"]["id"]
    _record_events(player, result)
    print(f"  ✓ {player.username} joined (session {player.session_id[:8]}...)")
    return True


async def play(session, api_base, player: SimulatedPlayer, word: str, count: int,
               surrender_after: Optional[int] = None, delay: float = 0.5) -> None:
    """Guess ``count - 1`` filler words and then the secret, or surrender midway."""
    for i in range(count):
        if surrender_after is not None and i == surrender_after:
            for _ in range(2):
                result = await api_call(session, api_base,
                                        f"/api/sessions/{player.session_id}/surrender", player, "POST")
                _record_events(player, result)
            print(f"  🏳 {player.username} surrendered after {i} guesses")
            return

        guess = word if i == count - 1 else FILLER_WORDS[i % len(FILLER_WORDS)]
        result = await api_call(session, api_base, f"/api/sessions/{player.session_id}/guess",
                                player, "POST", {"guess": guess})
        if "result" not in result:
            print(f"  ✗ {player.username} guess failed: {result}")
            return
        player.guesses += 1
        _record_events(player, result)
        outcome = result["result"]["outcome"]
        print(f"  {player.username} #{player.guesses}: {guess} -> {outcome}")
        if outcome == "not_playing":
            return
        await asyncio.sleep(delay)


async def wait_for_result(session, api_base, player: SimulatedPlayer, timeout: float) -> None:
    start = time.time()
    while player.result is None and time.time() - start < timeout:
        result = await api_call(session, api_base, f"/api/sessions/{player.session_id}", player)
        _record_events(player, result)
        if player.result is None:
            await asyncio.sleep(POLL_INTERVAL_SECONDS)


async def simulate_challenge(
    api_base: str,
    challenger: SimulatedPlayer,
    opponent: SimulatedPlayer,
    challenger_guesses: int,
    opponent_guesses: int,
    stagger: bool = False,
    opponent_surrenders: bool = False,
    timeout: int = 60,
) -> bool:
    """
    Run one challenge and check both clients agree on the winner.

    Returns True when both clients saw exactly one result and it matched.
    """
    print(f"\n{'='*60}")
    print(f"CHALLENGE TEST: {challenger.username} vs {opponent.username}")
    print(f"{'='*60}")
    print(f"API Base: {api_base}")
    print(f"Mode: {'surrender' if opponent_surrenders else ('staggered' if stagger else 'race')}")
    print()

    async with aiohttp.ClientSession() as session:
        # Make sure both profiles exist
        for player in (challenger, opponent):
            await api_call(session, api_base, "/api/profile", player)

        created = await api_call(session, api_base, "/api/challenges", challenger, "POST",
                                 {"opponent": opponent.username})
        if "id" not in created:
            print(f"Could not create challenge: {created}")
            return False
        challenge_id = created["id"]
        # The challenger's view includes the word, which lets this script play both sides
        word = created["word"]
        print(f"Challenge {challenge_id} created")

        if not await start_session(session, api_base, challenger, challenge_id):
            return False

        surrender_after = opponent_guesses // 2 if opponent_surrenders else None
        if stagger:
            await play(session, api_base, challenger, word, challenger_guesses)
            if not await start_session(session, api_base, opponent, challenge_id):
                return False
            await play(session, api_base, opponent, word, opponent_guesses, surrender_after)
        else:
            if not await start_session(session, api_base, opponent, challenge_id):
                return False
            await asyncio.gather(
                play(session, api_base, challenger, word, challenger_guesses),
                play(session, api_base, opponent, word, opponent_guesses, surrender_after),
            )

        print("\nWaiting for both clients to see the result...")
        await asyncio.gather(
            wait_for_result(session, api_base, challenger, timeout),
            wait_for_result(session, api_base, opponent, timeout),
        )

    print(f"\n{'='*60}")
    print("RESULTS")
    print(f"{'='*60}")
    ok = True
    for player in (challenger, opponent):
        results = [e for e in player.events if e["kind"] == "result"]
        print(f"  {player.username}: {len(results)} result event(s), winner={player.result and player.result['winner']}")
        if len(results) != 1:
            ok = False
    if challenger.result and opponent.result:
        agree = challenger.result["winner"] == opponent.result["winner"]
        print(f"  Clients agree: {'yes' if agree else 'NO'}")
        ok = ok and agree
    else:
        ok = False
    return ok


def main():
    parser = argparse.ArgumentParser(description="Play both sides of a WordHeat challenge")
    parser.add_argument("scenario", choices=["race", "surrender"])
    parser.add_argument("--api", default=DEFAULT_API_BASE, help="API base URL")
    parser.add_argument("--challenger", required=True, help="Challenger username")
    parser.add_argument("--opponent", required=True, help="Opponent username")
    parser.add_argument("--challenger-guesses", type=int, default=7)
    parser.add_argument("--opponent-guesses", type=int, default=5)
    parser.add_argument("--stagger", action="store_true",
                        help="Opponent starts only after the challenger has finished")
    parser.add_argument("--timeout", type=int, default=60)
    args = parser.parse_args()

    challenger = SimulatedPlayer(args.challenger, create_jwt_token(args.challenger))
    opponent = SimulatedPlayer(args.opponent, create_jwt_token(args.opponent))

    ok = asyncio.run(simulate_challenge(
        args.api,
        challenger,
        opponent,
        args.challenger_guesses,
        args.opponent_guesses,
        stagger=args.stagger,
        opponent_surrenders=args.scenario == "surrender",
        timeout=args.timeout,
    ))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
