import json
import re
from types import SimpleNamespace

import pytest

from wordheat.data import redis_client
from wordheat.services import oracle_service
from wordheat.services.profile_service import Profile


class FakeRedis:
    """In-memory stand-in for the subset of the Upstash client the app uses. TTLs are ignored."""

    def __init__(self):
        self.store = {}
        self.hashes = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None, nx=False):
        if nx and (key in self.store or key in self.hashes):
            return None
        self.store[key] = str(value)
        return "OK"

    def setex(self, key, seconds, value):
        self.store[key] = str(value)
        return "OK"

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            if self.hashes.pop(key, None) is not None:
                removed += 1
        return removed

    def exists(self, *keys):
        return sum(1 for k in keys if k in self.store or k in self.hashes)

    def expire(self, key, seconds):
        return key in self.store or key in self.hashes

    def hset(self, key, field=None, value=None, values=None):
        h = self.hashes.setdefault(key, {})
        items = dict(values or {})
        if field is not None:
            items[field] = value
        added = sum(1 for f in items if f not in h)
        for f, v in items.items():
            h[f] = str(v)
        return added

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def hsetnx(self, key, field, value):
        h = self.hashes.setdefault(key, {})
        if field in h:
            return False
        h[field] = str(value)
        return True

    def hincrby(self, key, field, increment):
        h = self.hashes.setdefault(key, {})
        h[field] = str(int(float(h.get(field, 0))) + increment)
        return int(h[field])


SIMILARITY = re.compile(r'target word "([^"]+)" and the guess word "([^"]+)"')


class FakeOracle:
    """
    Scripted chat-completions client.

    Answers are picked by recognising which prompt was sent. Unknown
    guesses score ``default_score``.
    """

    def __init__(self):
        self.target = "ocean"
        self.scores = {}
        self.default_score = 10
        self.hint = "waves"
        self.compass = "beach"
        self.recap = "You found it fast!"
        self.related = ["sea", "water", "tide", "wave", "marine"]
        self.fail = False
        self.on_call = None
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def similarity_calls(self):
        return [p for p in self.calls if SIMILARITY.search(p)]

    def _answer(self, prompt):
        match = SIMILARITY.search(prompt)
        if match:
            score = self.scores.get(match.group(2), self.default_score)
            if isinstance(score, str):
                return score
            return json.dumps({"score": score, "rank": max(1, (100 - score) * 10)})
        if "Warm, not Hot" in prompt:
            return self.compass
        if "Generate" in prompt:
            return json.dumps({"word": self.target})
        if "hint" in prompt:
            return self.hint
        if "List 5 common words" in prompt:
            return json.dumps({"words": self.related})
        if "commentary" in prompt:
            return self.recap
        if "definition" in prompt:
            return "A large body of salt water."
        raise AssertionError(f"Unexpected prompt: {prompt[:80]}")

    def _create(self, model, messages, response_format=None):
        prompt = messages[-1]["content"]
        self.calls.append(prompt)
        if self.on_call:
            self.on_call(prompt)
        if self.fail:
            raise RuntimeError("oracle offline")
        content = self._answer(prompt)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis_client", fake)
    return fake


@pytest.fixture(autouse=True)
def oracle(monkeypatch):
    fake = FakeOracle()
    monkeypatch.setattr(oracle_service, "_openai_client", fake)
    return fake


@pytest.fixture()
def clock():
    return FakeClock()


def _make_profile(username="alice", coins=100, xp=0, **extra):
    profile = Profile({"username": username, "is_guest": False, "coins": coins, "xp": xp, **extra})
    profile.save()
    return profile


@pytest.fixture()
def make_profile():
    return _make_profile


@pytest.fixture()
def profile():
    return _make_profile()
