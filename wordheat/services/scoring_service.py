"""
Scoring Gateway
Turns a guess into a 0-100 similarity score and a temperature
"""

from dataclasses import dataclass
from enum import Enum

from .oracle_service import OracleResult, ask_json, cache_get, cache_put
from ..errors import MalformedResponse

# Score used when the oracle could not rate a guess
SCORE_FALLBACK_RANK = 10000
# Rank reported when the oracle omits one
UNKNOWN_RANK = 9999


class Temperature(str, Enum):
    SOLVED = "Solved"
    BURNING = "Burning"
    HOT = "Hot"
    WARM = "Warm"
    COLD = "Cold"
    FREEZING = "Freezing"


@dataclass(frozen=True)
class Score:
    score: int
    rank: int


SCORE_FALLBACK = Score(0, SCORE_FALLBACK_RANK)


def normalize_word(text: str) -> str:
    """Lowercase and trim a word for comparison."""
    return (text or "").strip().lower()


def clamp_score(value) -> int:
    return max(0, min(100, int(round(float(value)))))


def temperature_for(score: int) -> Temperature:
    """Map a score to its temperature band."""
    score = clamp_score(score)
    if score == 100:
        return Temperature.SOLVED
    if score >= 90:
        return Temperature.BURNING
    if score >= 70:
        return Temperature.HOT
    if score >= 45:
        return Temperature.WARM
    if score >= 20:
        return Temperature.COLD
    return Temperature.FREEZING


def _similarity_prompt(target: str, guess: str, language: str) -> str:
    return f"""
Analyze the semantic similarity between the target word "{target}" and the guess word "{guess}" in {language}.
Provide a similarity score from 0 to 100, where:
- 100 is the exact word or perfect synonym.
- 90-99 is a very close synonym or direct type-of relationship.
- 70-89 is a strong association (same category, frequent context).
- 40-69 is a loose association.
- 0-39 is unrelated.

Also estimate the "rank" of closeness (e.g., 1 is the word itself, 1000 is far away).
Answer with a JSON object: {{"score": number, "rank": number}}.
"""


def score_similarity(target: str, guess: str, language: str) -> OracleResult[Score]:
    """
    Score a guess against the target word.

    An exact match (ignoring case and surrounding whitespace) scores
    100 without calling the oracle, so the game stays winnable while the
    oracle is down.

    Args:
        target: The secret word
        guess: The submitted word
        language: Language name used in the prompt

    Returns:
        OracleResult wrapping a Score; failures are left to the caller
    """
    clean_target = normalize_word(target)
    clean_guess = normalize_word(guess)

    if clean_target == clean_guess:
        return OracleResult.success(Score(100, 1))

    cached = cache_get("score", language, clean_target, clean_guess)
    if cached:
        return OracleResult.success(Score(cached["score"], cached["rank"]))

    result = ask_json(_similarity_prompt(clean_target, clean_guess, language), required=["score"])
    if not result.ok:
        return OracleResult.failure(result.error)

    try:
        score = clamp_score(result.value["score"])
        raw_rank = result.value.get("rank")
        rank = int(raw_rank) if raw_rank is not None else UNKNOWN_RANK
    except (TypeError, ValueError) as e:
        print(f"[ORACLE] Unusable similarity answer: {e}")
        return OracleResult.failure(MalformedResponse(str(e)))

    cache_put("score", language, {"score": score, "rank": rank}, clean_target, clean_guess)
    return OracleResult.success(Score(score, rank))
