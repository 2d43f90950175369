"""
Oracle Service
Language-model calls behind every semantic feature, with caching

Every public call returns an OracleResult instead of raising, so callers
choose their own fallback value per operation.
"""

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Optional, List, Generic, TypeVar, Any

from ..config import ORACLE_MODEL, SCORE_CACHE_SECONDS
from ..errors import OracleError, OracleUnavailable, MalformedResponse

T = TypeVar("T")

# Lazy-initialized OpenAI client
_openai_client = None

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


@dataclass
class OracleResult(Generic[T]):
    """Outcome of an oracle call: a value or the error that prevented it."""
    value: Optional[T] = None
    error: Optional[OracleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "OracleResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: OracleError) -> "OracleResult[T]":
        return cls(error=error)

    def unwrap_or(self, default: T) -> T:
        """Return the value, or ``default`` when the call failed."""
        return self.value if self.ok else default


def get_openai_client():
    """Get OpenAI client singleton."""
    global _openai_client
    if _openai_client is None:
        from openai import OpenAI
        _openai_client = OpenAI()
    return _openai_client


def clean_json(text: str) -> str:
    """Strip markdown fences or conversational wrapping around a JSON object."""
    if not text:
        return "{}"
    match = _FENCED_JSON.search(text)
    if match:
        return match.group(1)
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1:
        return text[start:end + 1]
    return text


def _complete(prompt: str, json_mode: bool) -> str:
    try:
        client = get_openai_client()
        kwargs = {
            "model": ORACLE_MODEL,
            "messages": [{"role": "user", "content": prompt}],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = client.chat.completions.create(**kwargs)
        return response.choices[0].message.content or ""
    except Exception as e:
        raise OracleUnavailable(str(e)) from e


def ask_json(prompt: str, required: List[str]) -> OracleResult[dict]:
    """
    Ask for a JSON object and check that the required keys are present.

    Args:
        prompt: The full instruction text
        required: Keys that must exist in the answer

    Returns:
        OracleResult wrapping the parsed object
    """
    try:
        text = _complete(prompt, json_mode=True)
        try:
            data = json.loads(clean_json(text))
        except ValueError as e:
            raise MalformedResponse(f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponse("Expected a JSON object")
        missing = [key for key in required if data.get(key) is None]
        if missing:
            raise MalformedResponse(f"Missing keys: {', '.join(missing)}")
        return OracleResult.success(data)
    except OracleError as e:
        print(f"[ORACLE] JSON request failed: {e}")
        return OracleResult.failure(e)


def ask_text(prompt: str) -> OracleResult[str]:
    """Ask for a short plain-text answer."""
    try:
        text = _complete(prompt, json_mode=False).strip()
        if not text:
            raise MalformedResponse("Empty answer")
        return OracleResult.success(text)
    except OracleError as e:
        print(f"[ORACLE] Text request failed: {e}")
        return OracleResult.failure(e)


# ============== CACHE ==============

def _cache_key(kind: str, language: str, *parts: str) -> str:
    """Generate cache key for an oracle answer."""
    digest = hashlib.md5(":".join(p.lower() for p in parts).encode()).hexdigest()
    return f"{kind}:{language.lower()}:{digest}"


def cache_get(kind: str, language: str, *parts: str) -> Optional[Any]:
    """Read a cached oracle answer, if any."""
    from ..data.redis_client import get_redis

    redis = get_redis()
    if not redis:
        return None
    try:
        cached = redis.get(_cache_key(kind, language, *parts))
        return json.loads(cached) if cached else None
    except Exception as e:
        print(f"[DATA] Oracle cache read failed: {e}")
        return None


def cache_put(kind: str, language: str, value: Any, *parts: str) -> None:
    """Cache an oracle answer."""
    from ..data.redis_client import get_redis

    redis = get_redis()
    if not redis:
        return
    try:
        redis.setex(_cache_key(kind, language, *parts), SCORE_CACHE_SECONDS, json.dumps(value))
    except Exception as e:
        print(f"[DATA] Oracle cache write failed: {e}")


def cache_put_once(kind: str, language: str, value: Any, *parts: str, ttl: Optional[int] = None) -> Any:
    """
    Cache an answer unless one is already stored, and return the stored one.

    The first writer wins, so concurrent callers all end up with the same
    value. If Redis is unavailable the caller's value is returned as is.
    """
    from ..data.redis_client import get_redis

    redis = get_redis()
    if not redis:
        return value
    key = _cache_key(kind, language, *parts)
    try:
        if redis.set(key, json.dumps(value), ex=ttl or SCORE_CACHE_SECONDS, nx=True):
            return value
        stored = redis.get(key)
        return json.loads(stored) if stored else value
    except Exception as e:
        print(f"[DATA] Oracle cache write failed: {e}")
        return value
