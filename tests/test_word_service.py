import json

import pytest

from wordheat.errors import ChallengeNotFound, InvalidParameters, MalformedResponse
from wordheat.services.word_service import (
    daily_seed,
    decode_preset_word,
    encode_preset_word,
    obtain_target,
)


def test_preset_words_decode_from_invite_links():
    assert decode_preset_word("b2NlYW4=") == "ocean"
    # Links often lose their padding
    assert decode_preset_word("b2NlYW4") == "ocean"
    assert decode_preset_word(encode_preset_word("  Forest ")) == "forest"


def test_undecodable_preset_is_rejected():
    with pytest.raises(InvalidParameters):
        decode_preset_word("!!not-base64!!")


def test_preset_mode_never_calls_the_oracle(oracle):
    result = obtain_target("party", "English", preset="b2NlYW4=")
    assert result.value == "ocean"
    assert oracle.calls == []


def test_daily_word_is_seeded_by_date(oracle):
    result = obtain_target("daily", "English", seed="2024-05-01")
    assert result.value == "ocean"
    assert '"Daily Word" for the date seed "2024-05-01"' in oracle.calls[0]


def test_daily_word_is_shared_by_every_player(oracle):
    first = obtain_target("daily", "English", seed="2024-05-01")
    oracle.target = "forest"
    second = obtain_target("daily", "English", seed="2024-05-01")
    assert first.value == second.value == "ocean"
    assert len(oracle.calls) == 1

    # The next day gets its own word
    assert obtain_target("daily", "English", seed="2024-05-02").value == "forest"


def test_daily_outage_is_not_remembered(oracle):
    oracle.fail = True
    assert not obtain_target("daily", "English", seed="2024-05-01").ok
    oracle.fail = False
    assert obtain_target("daily", "English", seed="2024-05-01").value == "ocean"


def test_first_stored_daily_word_wins(fake_redis, oracle):
    from wordheat.services.oracle_service import cache_put_once

    cache_put_once("daily", "English", "harbor", "2024-05-01")
    assert obtain_target("daily", "English", seed="2024-05-01").value == "harbor"
    assert cache_put_once("daily", "English", "forest", "2024-05-01") == "harbor"
    assert oracle.calls == []


def test_words_in_other_scripts_are_accepted(oracle):
    oracle.target = "Árbol"
    assert obtain_target("unlimited", "Spanish").value == "árbol"
    oracle.target = "بحر"
    assert obtain_target("unlimited", "Arabic", topic="Nature").value == "بحر"


def test_daily_seed_format():
    seed = daily_seed()
    assert len(seed) == 10 and seed[4] == "-" and seed[7] == "-"


def test_topic_biases_generation(oracle):
    obtain_target("unlimited", "English", topic="Cooking")
    assert '"Cooking"' in oracle.calls[0]


def test_multi_word_answers_are_rejected(oracle):
    oracle.target = "sea shell"
    result = obtain_target("unlimited", "English")
    assert isinstance(result.error, MalformedResponse)


def test_obscure_words_are_rejected(oracle):
    oracle.target = "qzxqzv"
    result = obtain_target("unlimited", "English")
    assert isinstance(result.error, MalformedResponse)


def test_oracle_outage_is_returned_for_the_caller(oracle):
    oracle.fail = True
    result = obtain_target("unlimited", "English")
    assert not result.ok
    assert result.unwrap_or("apple") == "apple"


def test_challenge_bound_word_comes_from_the_record(fake_redis, oracle):
    fake_redis.hset("challenge:abcdef0123456789", values={
        "id": "abcdef0123456789", "word": "Harbor", "version": "1",
    })
    assert obtain_target("challenge", "English", challenge_id="abcdef0123456789").value == "harbor"
    assert oracle.calls == []


def test_missing_challenge_raises():
    with pytest.raises(ChallengeNotFound):
        obtain_target("challenge", "English", challenge_id="0000000000000000")
