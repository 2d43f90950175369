from wordheat.routes import handle_challenge_routes, handle_profile_routes, handle_session_routes


def _start(clock, username=None, **body):
    status, data = handle_session_routes("POST", "/api/sessions", body or {"mode": "unlimited"}, username, clock)
    assert status == 200, data
    return data["session"]["id"]


def _post(clock, session_id, action, username=None, **body):
    return handle_session_routes("POST", f"/api/sessions/{session_id}/{action}", body, username, clock)


def _get(clock, session_id, username=None):
    return handle_session_routes("GET", f"/api/sessions/{session_id}", {}, username, clock)


# ============== SESSIONS ==============

def test_guest_can_play_without_seeing_the_word(oracle, clock):
    oracle.scores["sea"] = 92
    session_id = _start(clock)

    status, data = _post(clock, session_id, "guess", guess="sea")
    assert status == 200
    assert data["result"]["outcome"] == "scored"
    assert data["session"]["best_score"] == 92
    assert "target_word" not in data["session"]

    status, data = _post(clock, session_id, "guess", guess="Ocean")
    assert data["session"]["status"] == "won"
    assert data["session"]["target_word"] == "ocean"


def test_guess_must_be_a_single_word(clock):
    session_id = _start(clock)
    status, _ = _post(clock, session_id, "guess", guess="two words")
    assert status == 400


def test_concurrent_guess_is_refused(fake_redis, clock):
    session_id = _start(clock)
    fake_redis.set(f"session:{session_id}:lock", "1")
    status, data = _post(clock, session_id, "guess", guess="sea")
    assert status == 409
    assert data["detail"] == "Another request for this game is still running"


def test_guess_during_a_hint_request_is_not_lost(make_profile, oracle, clock):
    make_profile("alice")
    session_id = _start(clock, "alice")
    inner = []

    def guess_meanwhile(prompt):
        oracle.on_call = None
        inner.append(_post(clock, session_id, "guess", "alice", guess="sea"))

    oracle.on_call = guess_meanwhile
    status, data = _post(clock, session_id, "hint", "alice", kind="word")
    assert status == 200
    assert inner[0][0] == 409

    status, data = _post(clock, session_id, "guess", "alice", guess="sea")
    assert status == 200
    status, data = _get(clock, session_id, "alice")
    assert [g["word"] for g in data["session"]["guesses"]] == ["sea"]
    assert len(data["session"]["hints"]) == 1
    assert data["coins"] == 70


def test_view_while_locked_does_not_write(fake_redis, clock):
    session_id = _start(clock, mode="blitz")
    before = fake_redis.store[f"session:{session_id}"]
    fake_redis.set(f"session:{session_id}:lock", "1")
    clock.advance(10)

    status, data = _get(clock, session_id)
    assert status == 200
    assert data["session"]["time_left"] == 60
    assert fake_redis.store[f"session:{session_id}"] == before


def test_view_catches_the_blitz_clock_up(fake_redis, clock):
    session_id = _start(clock, mode="blitz")
    clock.advance(10)
    status, data = _get(clock, session_id)
    assert data["session"]["time_left"] == 50
    assert f"session:{session_id}:lock" not in fake_redis.store


def test_sessions_belong_to_their_owner(make_profile, clock):
    make_profile("alice")
    session_id = _start(clock, "alice")
    assert _get(clock, session_id, "bob")[0] == 404
    assert _get(clock, session_id, "alice")[0] == 200


def test_malformed_session_id(clock):
    assert _get(clock, "not-a-session")[0] == 400


def test_hint_without_coins(clock):
    session_id = _start(clock)
    status, data = _post(clock, session_id, "hint", kind="word")
    assert status == 402
    assert data["detail"] == "Not enough coins!"


def test_powerup_through_the_api(make_profile, clock):
    make_profile("alice")
    session_id = _start(clock, "alice")
    status, data = _post(clock, session_id, "powerup", "alice", item_id="letter_spy")
    assert status == 200
    assert data["effect"]["purchased"]
    assert data["coins"] == 40
    assert data["session"]["masked_word"] == "O _ _ _ _"


def test_handoff_outside_party_mode(clock):
    session_id = _start(clock)
    assert _post(clock, session_id, "handoff")[0] == 409


def test_party_guesses_need_a_handoff(clock):
    session_id = _start(clock, mode="party", players=2)
    assert _post(clock, session_id, "guess", guess="rock")[1]["result"]["outcome"] == "awaiting_handoff"

    status, data = _post(clock, session_id, "handoff")
    assert status == 200
    assert not data["session"]["party"]["awaiting_handoff"]
    assert _post(clock, session_id, "guess", guess="rock")[1]["result"]["outcome"] == "scored"


def test_surrender_confirmation_spans_requests(clock):
    session_id = _start(clock)
    assert _post(clock, session_id, "surrender")[1]["surrender"] == "armed"
    clock.advance(1)
    status, data = _post(clock, session_id, "surrender")
    assert data["surrender"] == "surrendered"
    assert data["session"]["status"] == "lost"


def test_leaving_deletes_the_session(clock):
    session_id = _start(clock)
    assert _post(clock, session_id, "leave")[1] == {"left": True}
    assert _get(clock, session_id)[0] == 404


def test_guests_cannot_join_challenges(clock):
    status, _ = handle_session_routes(
        "POST", "/api/sessions", {"mode": "challenge", "challenge": "abcdef0123456789"}, None, clock)
    assert status == 401


def test_unknown_paths_fall_through(clock):
    assert handle_session_routes("GET", "/api/elsewhere", {}, None, clock) is None


# ============== CHALLENGES ==============

def _create_challenge(challenger="alice", opponent="bob", **body):
    return handle_challenge_routes("POST", "/api/challenges", {"opponent": opponent, **body}, {}, challenger)


def test_challenges_need_a_signed_in_player():
    assert _create_challenge(challenger=None)[0] == 401


def test_unknown_opponent():
    status, data = _create_challenge(opponent="nobody")
    assert status == 404
    assert data["detail"] == "Player not found"


def test_only_the_challenger_sees_the_word(make_profile):
    make_profile("bob")
    status, created = _create_challenge()
    assert status == 200
    assert created["word"] == "ocean"

    path = f"/api/challenges/{created['id']}"
    status, seen = handle_challenge_routes("GET", path, {}, {}, "bob")
    assert status == 200
    assert "word" not in seen
    assert handle_challenge_routes("GET", path, {}, {}, "carol")[0] == 403


def test_poll_reports_only_changes(make_profile):
    make_profile("bob")
    _, created = _create_challenge()
    path = f"/api/challenges/{created['id']}/poll"

    status, data = handle_challenge_routes("GET", path, {}, {"version": "0"}, "bob")
    assert status == 200 and data["changed"]
    version = data["version"]

    _, accepted = handle_challenge_routes("POST", f"/api/challenges/{created['id']}/accept", {}, {}, "bob")
    assert accepted["accepted"]

    status, data = handle_challenge_routes("GET", path, {}, {"version": str(version)}, "bob")
    assert data["changed"]
    assert data["challenge"]["status"] == "accepted"

    status, data = handle_challenge_routes("GET", path, {}, {"version": str(data["version"])}, "bob")
    assert not data["changed"]
    assert "challenge" not in data


def test_challenge_result_is_delivered_once_per_player(make_profile, clock):
    make_profile("alice")
    make_profile("bob")
    _, created = _create_challenge()
    alice_id = _start(clock, "alice", mode="challenge", challenge=created["id"])
    bob_id = _start(clock, "bob", mode="challenge", challenge=created["id"])

    _post(clock, alice_id, "guess", "alice", guess="rock")
    clock.advance(5)
    _, data = _post(clock, bob_id, "guess", "bob", guess="ocean")
    assert [(e["kind"], e["won"]) for e in data["events"]] == [("result", True)]

    _, data = _get(clock, alice_id, "alice")
    results = [e for e in data["events"] if e["kind"] == "result"]
    assert [(e["winner"], e["won"]) for e in results] == [("bob", False)]
    assert data["session"]["status"] == "lost"

    _, data = _get(clock, alice_id, "alice")
    assert data["events"] == []


# ============== PROFILE ==============

def test_profile_lists_todays_missions():
    status, data = handle_profile_routes("GET", "/api/profile", {}, "dave")
    assert status == 200
    assert len(data["daily_missions"]) == 3
    assert data["level"] == 1
    assert "letter_spy" in data["shop"]


def test_unfinished_mission_cannot_be_claimed():
    _, data = handle_profile_routes("GET", "/api/profile", {}, "dave")
    mission_id = data["daily_missions"][0]["id"]
    status, _ = handle_profile_routes("POST", f"/api/profile/missions/{mission_id}/claim", {}, "dave")
    assert status == 400


def test_profile_needs_a_signed_in_player():
    assert handle_profile_routes("GET", "/api/profile", {}, None)[0] == 401
