"""
Target Word Provider
Obtains the secret word for a session
"""

import base64
import binascii
import re
from datetime import datetime, timezone
from typing import Optional

from wordfreq import zipf_frequency

from .oracle_service import OracleResult, ask_json, cache_get, cache_put_once
from ..config import DAILY_WORD_CACHE_SECONDS
from ..errors import MalformedResponse, InvalidParameters, ChallengeNotFound

# Letters of any script, no digits or punctuation
WORD_PATTERN = re.compile(r"^[^\W\d_]{2,30}$")

# Words rarer than this are rejected for the open-ended prompts
MIN_ZIPF = 1.5

LANGUAGE_CODES = {
    "English": "en",
    "Spanish": "es",
    "French": "fr",
    "German": "de",
    "Arabic": "ar",
}

DEFAULT_LANGUAGE = "English"

CATEGORIES = {
    "common": "General",
    "animals": "Animals",
    "food": "Food & Drink",
    "science": "Science",
    "travel": "Travel",
    "fantasy": "Fantasy",
}


def daily_seed(date: Optional[datetime] = None) -> str:
    """Seed for the shared daily puzzle (UTC date as YYYY-MM-DD)."""
    date = date or datetime.now(timezone.utc)
    return date.strftime("%Y-%m-%d")


def encode_preset_word(word: str) -> str:
    """Encode a secret word for an invite link."""
    return base64.b64encode(word.strip().lower().encode("utf-8")).decode("ascii")


def decode_preset_word(encoded: str) -> str:
    """Decode a secret word embedded in an invite link."""
    try:
        padded = encoded + "=" * (-len(encoded) % 4)
        word = base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidParameters("Could not decode the shared word") from e
    word = word.strip().lower()
    if not word:
        raise InvalidParameters("Could not decode the shared word")
    return word


def _word_prompt(language: str, seed: Optional[str], category: Optional[str]) -> str:
    if seed:
        return (
            f'Generate the "Daily Word" for the date seed "{seed}" in {language}. '
            "It must be a common, simple noun (singular). "
            'Answer with a JSON object: {"word": string}.'
        )
    if category and category != "common":
        return (
            f"Generate a single, specific noun in {language} that is strongly associated "
            f'with the theme/category "{category}".\n'
            "Examples:\n"
            "- If category is 'Star Wars', return 'Jedi' or 'Lightsaber'.\n"
            "- If category is 'Cooking', return 'Spatula' or 'Recipe'.\n"
            "- If category is 'Animals', return 'Giraffe'.\n"
            "Ensure the word is a single noun (no spaces), lowercase, and relatively "
            "well-known within that context. "
            'Answer with a JSON object: {"word": string}.'
        )
    return (
        f"Generate a random, common, simple noun (singular) in {language} for a word "
        "guessing game. Avoid proper nouns unless they are extremely common concepts. "
        'Answer with a JSON object: {"word": string}.'
    )


def generate_target_word(
    language: str,
    seed: Optional[str] = None,
    category: Optional[str] = None,
) -> OracleResult[str]:
    """
    Ask the oracle for a fresh secret word.

    Args:
        language: Language name
        seed: Date seed for the daily puzzle
        category: Category id or free-form topic

    Returns:
        OracleResult wrapping the lowercase word
    """
    result = ask_json(_word_prompt(language, seed, category), required=["word"])
    if not result.ok:
        return OracleResult.failure(result.error)

    word = str(result.value["word"]).strip().lower()
    if not WORD_PATTERN.match(word):
        print(f"[ORACLE] Rejected generated word format: {word!r}")
        return OracleResult.failure(MalformedResponse("Generated word is not a single word"))

    open_ended = seed is not None or not category or category == "common"
    code = LANGUAGE_CODES.get(language)
    if open_ended and code and zipf_frequency(word, code) < MIN_ZIPF:
        print("[ORACLE] Rejected obscure generated word")
        return OracleResult.failure(MalformedResponse("Generated word is too obscure"))

    return OracleResult.success(word)


def daily_target_word(language: str, seed: str) -> OracleResult[str]:
    """
    The shared word for one day and language.

    The first generated word is stored and every later player receives it.
    Failures are not stored, so the next player asks the oracle again.
    """
    cached = cache_get("daily", language, seed)
    if cached:
        return OracleResult.success(str(cached))

    result = generate_target_word(language, seed=seed)
    if not result.ok:
        return result
    word = cache_put_once("daily", language, result.value, seed, ttl=DAILY_WORD_CACHE_SECONDS)
    print(f"[ORACLE] Daily word fixed for {language} on {seed}")
    return OracleResult.success(str(word))


def obtain_target(
    mode: str,
    language: str,
    *,
    category: Optional[str] = None,
    topic: Optional[str] = None,
    seed: Optional[str] = None,
    preset: Optional[str] = None,
    challenge_id: Optional[str] = None,
) -> OracleResult[str]:
    """
    Resolve the secret word for a session.

    Preset words come from an invite link, challenge-bound words from the
    shared challenge record; everything else is generated. Decoding and
    lookup failures raise, oracle failures are returned for the caller's
    fallback policy.
    """
    if preset:
        return OracleResult.success(decode_preset_word(preset))

    if challenge_id:
        from ..data.challenge_repository import load_challenge_record

        record = load_challenge_record(challenge_id)
        if not record or not record.get("word"):
            raise ChallengeNotFound()
        return OracleResult.success(str(record["word"]).strip().lower())

    if mode == "daily":
        return daily_target_word(language, seed or daily_seed())

    return generate_target_word(language, category=topic or category)
