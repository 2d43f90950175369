import pytest

from wordheat.errors import DailyAlreadyPlayed, InvalidParameters
from wordheat.services.game_service import (
    GameSession,
    SessionParams,
    SessionStatus,
    start_session,
)
from wordheat.services.scoring_service import Temperature


def _mission(mission_type, target=3):
    return {
        "id": f"m_{mission_type.lower()}",
        "type": mission_type,
        "description": mission_type,
        "target": target,
        "progress": 0,
        "reward": 30,
        "claimed": False,
    }


def _start(profile, clock, **params):
    return start_session(SessionParams.from_dict(params), profile, clock=clock)


def test_daily_game_is_won_with_the_exact_word(profile, oracle, clock):
    oracle.scores["sea"] = 92
    session = _start(profile, clock, mode="daily", date="2024-05-01")
    assert session.target_word == "ocean"

    result = session.submit_guess("sea")
    assert result.outcome == "scored"
    assert result.guess.temperature == Temperature.BURNING
    assert session.status == SessionStatus.PLAYING

    result = session.submit_guess(" Ocean ")
    assert result.outcome == "won"
    assert session.status == SessionStatus.WON
    assert len(session.guesses) == 2
    assert session.best_score == 100
    assert profile.coins == 110
    assert profile.data["solved_words"][0]["guesses_count"] == 2
    assert profile.has_completed_daily("2024-05-01")
    assert session.recap == oracle.recap
    assert session.related_words == oracle.related
    assert session.definition == "A large body of salt water."


def test_finished_daily_cannot_be_replayed(make_profile, oracle, clock):
    profile = make_profile(solved_words=[{"word": "ocean", "mode": "daily", "seed": "2024-05-01"}])
    with pytest.raises(DailyAlreadyPlayed):
        _start(profile, clock, mode="daily", date="2024-05-01")
    assert oracle.calls == []


def test_duplicates_and_empty_guesses_are_ignored(profile, oracle, clock):
    session = _start(profile, clock)
    session.submit_guess("sea")
    assert session.submit_guess("  SEA").outcome == "duplicate"
    assert session.submit_guess("   ").outcome == "empty"
    assert len(session.guesses) == 1
    assert len(oracle.similarity_calls()) == 1


def test_guesses_after_the_game_are_rejected(profile, clock):
    session = _start(profile, clock)
    session.submit_guess("ocean")
    assert session.submit_guess("sea").outcome == "not_playing"
    assert len(session.guesses) == 1


def test_exact_match_wins_while_the_oracle_is_down(profile, oracle, clock):
    oracle.fail = True
    session = _start(profile, clock)
    assert session.target_word == "apple"

    assert session.submit_guess("Apple").outcome == "won"
    assert session.recap == "Well done!"
    assert session.related_words == []
    assert session.definition == "Definition unavailable."


def test_unscorable_guess_falls_back_to_zero(profile, oracle, clock):
    oracle.scores["tree"] = "I cannot say"
    session = _start(profile, clock)
    guess = session.submit_guess("tree").guess
    assert (guess.score, guess.rank) == (0, 10000)
    assert guess.temperature == Temperature.FREEZING
    assert session.is_playing


def test_best_score_never_drops(profile, oracle, clock):
    oracle.scores.update({"sea": 92, "rock": 5})
    session = _start(profile, clock)
    session.submit_guess("sea")
    session.submit_guess("rock")
    assert session.best_score == 92


def test_sorted_view_leaves_the_log_alone(profile, oracle, clock):
    oracle.scores.update({"sea": 92, "rock": 5, "tide": 92})
    session = _start(profile, clock)
    for word in ("sea", "rock", "tide"):
        session.submit_guess(word)
        clock.advance(1)

    assert [g.word for g in session.sorted_guesses()] == ["tide", "sea", "rock"]
    assert [g.word for g in session.guesses] == ["sea", "rock", "tide"]


def test_burning_guess_advances_missions(make_profile, oracle, clock):
    profile = make_profile(daily_missions=[_mission("GET_BURNING")])
    oracle.scores["sea"] = 95
    session = _start(profile, clock)
    session.submit_guess("sea")
    assert profile.data["daily_missions"][0]["progress"] == 1


def test_unknown_mode_is_rejected():
    with pytest.raises(InvalidParameters):
        SessionParams.from_dict({"mode": "marathon"})


def test_challenge_mode_needs_an_id():
    with pytest.raises(InvalidParameters):
        SessionParams.from_dict({"mode": "challenge"})


# ============== TUTORIAL ==============

def test_tutorial_uses_the_fixed_word(profile, oracle, clock):
    session = _start(profile, clock, mode="tutorial")
    assert session.target_word == "water"
    assert session.show_tutorial
    assert oracle.calls == []

    session.submit_guess("water")
    assert profile.tutorial_completed


def test_tutorial_surrender_still_completes_it(profile, clock):
    session = _start(profile, clock, mode="tutorial")
    session.surrender()
    assert session.surrender() == "surrendered"
    assert session.status == SessionStatus.LOST
    assert profile.tutorial_completed


# ============== SURRENDER ==============

def test_surrender_needs_a_second_press(profile, clock):
    session = _start(profile, clock)
    assert session.surrender() == "armed"
    assert session.is_playing

    clock.advance(2)
    assert session.surrender() == "surrendered"
    assert session.status == SessionStatus.LOST
    assert session.view()["target_word"] == "ocean"


def test_lapsed_surrender_confirmation_rearms(profile, clock):
    session = _start(profile, clock)
    session.surrender()
    clock.advance(4)
    assert session.surrender() == "armed"
    assert session.is_playing


# ============== BLITZ ==============

def test_blitz_runs_out_after_sixty_ticks(make_profile, clock):
    profile = make_profile(daily_missions=[_mission("PLAY_BLITZ", target=1)])
    session = _start(profile, clock, mode="blitz")
    assert session.timer.time_left == 60

    for _ in range(60):
        session.tick()
    assert session.status == SessionStatus.LOST
    assert session.timer.time_left == 0

    session.tick()
    assert session.timer.time_left == 0
    assert profile.data["daily_missions"][0]["progress"] == 1


def test_time_lord_starts_with_more_time(make_profile, clock):
    session = _start(make_profile(xp=2500), clock, mode="blitz")
    assert session.timer.time_left == 70


def test_blitz_win_records_time_left(profile, clock):
    session = _start(profile, clock, mode="blitz")
    clock.advance(12)
    session.submit_guess("ocean")
    assert session.status == SessionStatus.WON
    assert profile.data["blitz_high_score"] == 48
    assert not session.timer.running


def test_clock_only_counts_whole_seconds(profile, clock):
    session = _start(profile, clock, mode="blitz")
    clock.advance(5.5)
    session.advance_clock(clock())
    assert session.timer.time_left == 55
    clock.advance(0.5)
    session.advance_clock(clock())
    assert session.timer.time_left == 54


def test_guess_scored_after_time_ran_out_is_discarded(profile, oracle, clock):
    session = _start(profile, clock, mode="blitz")
    clock.advance(59)
    session.advance_clock(clock())
    oracle.on_call = lambda prompt: clock.advance(2)

    assert session.submit_guess("sea").outcome == "discarded"
    assert session.status == SessionStatus.LOST
    assert session.guesses == []


def test_second_submit_while_scoring_is_refused(profile, oracle, clock):
    session = _start(profile, clock)
    session.submitting = True
    assert session.submit_guess("sea").outcome == "busy"
    assert oracle.similarity_calls() == []


# ============== VIEWS & STORAGE ==============

def test_view_hides_the_word_while_playing(profile, clock):
    session = _start(profile, clock)
    view = session.view()
    assert "target_word" not in view
    assert view["word_length"] == 5
    assert session.view(reveal=True)["target_word"] == "ocean"


def test_masked_word_shows_revealed_letters(profile, clock):
    session = _start(profile, clock)
    session.reveal_letter()
    session.reveal_letter()
    assert session.masked_word() == "O C _ _ _"


def test_session_survives_a_round_trip(profile, oracle, clock):
    oracle.scores["sea"] = 92
    session = _start(profile, clock, mode="blitz")
    session.submit_guess("sea")
    session.add_hint("waves", "word")
    session.reveal_letter()
    session.surrender()

    data = session.to_dict()
    restored = GameSession.from_dict(data, profile, clock)
    assert restored.to_dict() == data
    assert restored.guesses[0].temperature == Temperature.BURNING
    assert restored.surrender_confirm.is_armed(clock())
