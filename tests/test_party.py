import pytest

from wordheat.services.game_service import SessionParams, start_session
from wordheat.services.party_service import PartySequencer
from wordheat.services.word_service import encode_preset_word


def test_turns_rotate_through_every_player():
    party = PartySequencer.from_params(3)
    assert party.current_name == "Player 1"
    assert [party.advance() for _ in range(4)] == [2, 3, 1, 2]


@pytest.mark.parametrize("requested, total", [(None, 2), (1, 2), (3, 3), (9, 4)])
def test_player_count_is_clamped(requested, total):
    assert PartySequencer.from_params(requested).total == total


def test_team_mode_has_two_teams():
    party = PartySequencer.from_params(4, teams=True)
    assert party.names == ["Team Red", "Team Blue"]
    assert party.team_mode


def test_custom_names_replace_defaults_in_order():
    party = PartySequencer.from_params(3, names=["Ann", "", "Cy"])
    assert party.names == ["Ann", "Player 2", "Cy"]


def test_setter_watches_while_player_two_guesses():
    party = PartySequencer.from_params(3, word=encode_preset_word("ocean"))
    assert party.setter_mode
    assert party.current == 2
    party.advance()
    assert party.current == 2


def test_turn_change_waits_for_handoff():
    party = PartySequencer.from_params(2)
    party.acknowledge_handoff()
    assert not party.awaiting_handoff
    party.advance()
    assert party.awaiting_handoff


def test_guesses_wait_for_the_device_to_change_hands(profile, oracle, clock):
    params = SessionParams.from_dict({"mode": "party", "players": "2", "names": "Ann,Ben"})
    session = start_session(params, profile, clock=clock)

    result = session.submit_guess("rock")
    assert result.outcome == "awaiting_handoff"
    assert session.guesses == []
    assert oracle.similarity_calls() == []

    session.party.acknowledge_handoff()
    assert session.submit_guess("rock").outcome == "scored"
    assert session.submit_guess("tree").outcome == "awaiting_handoff"
    assert [g.word for g in session.guesses] == ["rock"]


def test_party_session_credits_the_current_player(profile, oracle, clock):
    params = SessionParams.from_dict({"mode": "party", "players": "2", "names": "Ann,Ben"})
    session = start_session(params, profile, clock=clock)

    session.party.acknowledge_handoff()
    first = session.submit_guess("rock").guess
    session.party.acknowledge_handoff()
    second = session.submit_guess("tree").guess
    assert (first.player, second.player) == ("Ann", "Ben")
    assert session.party.current_name == "Ann"
    assert session.party.awaiting_handoff


def test_shared_word_party_skips_the_oracle(profile, oracle, clock):
    params = SessionParams.from_dict({"mode": "party", "word": encode_preset_word("Harbor")})
    session = start_session(params, profile, clock=clock)
    assert session.target_word == "harbor"
    assert oracle.calls == []
    assert session.party.current_name == "Player 2"
