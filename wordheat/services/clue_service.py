"""
Clue Service
Oracle prompts for hints, compass clues, recaps and post-game words
"""

from typing import List, Sequence

from .oracle_service import OracleResult, ask_json, ask_text
from ..errors import MalformedResponse

HINT_KINDS = ("word", "sentence")


def generate_hint(
    target: str,
    language: str,
    kind: str,
    previous_hints: Sequence[str] = (),
) -> OracleResult[str]:
    """
    Ask for a hint that does not repeat earlier hints.

    Word hints must be a related concept rather than a synonym or a
    translation of the target; sentence hints are riddle-style.
    """
    avoid = ""
    if previous_hints:
        avoid = (
            "NOTE: The user has already received these hints, DO NOT repeat similar "
            f"information or words: {'; '.join(previous_hints)}"
        )

    if kind == "word":
        prompt = f"""
The user is trying to guess the word "{target}" in {language}.
Provide a SINGLE word hint that is related.

STRICT RULES:
1. The output word MUST be in {language}.
2. Do NOT provide a direct synonym (e.g. if target is "House", do NOT say "Home").
3. Do NOT provide a translated version of the word.
4. Provide a related concept, an object often found with it, or a characteristic.
5. Return ONLY the single word.
6. {avoid}
"""
    else:
        prompt = f"""
The user is trying to guess the word "{target}" in {language}.
Provide a helpful sentence hint (riddle style) describing its function, appearance, or context.

STRICT RULES:
1. The sentence MUST be written in {language}. This is mandatory.
2. Make it easier than the single word hint, but do not use the word itself.
3. Keep it under 20 words.
4. {avoid}
"""
    result = ask_text(prompt)
    if result.ok and target.lower() in result.value.lower().split():
        return OracleResult.failure(MalformedResponse("Hint revealed the target"))
    return result


def generate_compass_clue(target: str, language: str) -> OracleResult[str]:
    """Ask for a deliberately Warm (not Hot) related word."""
    prompt = f"""
Generate a single word in {language} that is semantically related to "{target}" but is NOT a direct synonym.
The similarity score should be between 50 and 70 (Warm, not Hot).
Return only the word.
"""
    return ask_text(prompt)


def get_definition(word: str, language: str) -> OracleResult[str]:
    prompt = f'Provide a short, one-sentence dictionary definition for the word "{word}" in {language}.'
    return ask_text(prompt)


def get_related_words(target: str, language: str) -> OracleResult[List[str]]:
    """Words close to the target, shown after the game ends."""
    prompt = f"""
List 5 common words in {language} that are semantically very close to "{target}" (synonyms or strong associations).
Answer with a JSON object: {{"words": [string, ...]}}.
"""
    result = ask_json(prompt, required=["words"])
    if not result.ok:
        return OracleResult.failure(result.error)
    words = result.value["words"]
    if not isinstance(words, list):
        return OracleResult.failure(MalformedResponse("words is not a list"))
    return OracleResult.success([str(w).strip().lower() for w in words if str(w).strip()][:5])


def generate_recap(target: str, guesses: Sequence, language: str) -> OracleResult[str]:
    """
    A short witty commentary on a finished game.

    Args:
        target: The secret word
        guesses: Guess log in chronological order
        language: Language name
    """
    history = ", ".join(f"{g.word} ({g.temperature.value})" for g in sorted(guesses, key=lambda g: g.timestamp))
    prompt = f"""
The user just finished a game of guessing the word "{target}" in {language}.
Here is their guess history: {history}.

Write a short, fun, witty, 2-sentence commentary on their performance.
Comment on their start, any big jumps they made, or how fast they found it.
Address the user directly as "You".
"""
    return ask_text(prompt)
