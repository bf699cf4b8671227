import logging

import pytest

from engine import (
    FallbackProvider,
    GameConfig,
    InvariantViolation,
    fallback_move,
    request_move,
    resolve,
    start_match,
    step,
)


class FlakyProvider(FallbackProvider):
    """Raises or misbehaves in the phases it is told to."""

    def __init__(self, broken, mode="raise"):
        self.broken = set(broken)
        self.mode = mode

    def __call__(self, phase, own_cards, opponent_cards, round_no):
        if phase in self.broken:
            if self.mode == "raise":
                raise TimeoutError("provider timed out")
            if self.mode == "garbage":
                return "play your best card"
            if self.mode == "foreign":
                # ids from the wrong side of the table
                foreign = opponent_cards[0]["id"]
                return {"plusId": foreign, "minusId": foreign, "revealId": own_cards[0]["id"], "playId": foreign}
        return super().__call__(phase, own_cards, opponent_cards, round_no)


def _state():
    return start_match(GameConfig(ai_kind="fallback", user_order=list(range(1, 10)), ai_order=[4, 2, 9, 1, 3, 5, 6, 7, 8]))


def _play_round(state, provider, play_id):
    step(state, provider)
    pa = state.pending[0]
    resolve(state, pa.id, {"plusId": "user-9", "minusId": "user-2"}, provider)
    pa = state.pending[0]
    resolve(state, pa.id, {"revealId": "ai-3"}, provider)
    pa = state.pending[0]
    assert pa.kind == "play_card"
    resolve(state, pa.id, {"playId": play_id}, provider)


def test_battle_failure_plays_first_unused_card_and_match_continues(caplog):
    state = _state()
    provider = FlakyProvider({"BATTLE"})
    with caplog.at_level(logging.WARNING, logger="engine.provider"):
        _play_round(state, provider, "user-5")
    h = state.history[-1]
    # ai-1 is the first card dealt (base 4)
    assert state.ai.card("ai-1").is_used
    assert h.ai_card_value == 4 and h.user_card_value == 5 and h.winner == "user"
    assert "AI_FALLBACK: BATTLE" in state.logs
    assert any("BATTLE" in r.getMessage() for r in caplog.records)
    assert state.round == 2 and state.pending and state.pending[0].kind == "place_tokens"


@pytest.mark.parametrize("mode", ["raise", "garbage", "foreign"])
def test_every_phase_falls_back_on_any_failure(mode):
    state = _state()
    provider = FlakyProvider({"PLACEMENT", "REVEAL", "BATTLE"}, mode=mode)
    _play_round(state, provider, "user-1")
    first = state.ai.card("ai-1")
    assert (first.plus_count, first.minus_count) == (1, 1)
    assert state.user.card("user-1").is_revealed_to_opponent
    assert first.is_used
    for phase in ("PLACEMENT", "REVEAL", "BATTLE"):
        assert f"AI_FALLBACK: {phase}" in state.logs
    assert len(state.history) == 1


def test_request_move_passes_legal_moves_through():
    state = _state()
    move, fallback = request_move(lambda *a: {"playId": "ai-3"}, "BATTLE", state.ai, state.user, 1)
    assert move == {"playId": "ai-3"} and not fallback


def test_fallback_reveal_skips_when_nothing_hidden():
    state = _state()
    for c in state.user.cards:
        c.is_revealed_to_opponent = True
    assert fallback_move("REVEAL", state.ai, state.user) is None
    move, fallback = request_move(FallbackProvider(), "REVEAL", state.ai, state.user, 1)
    assert move is None and fallback


def test_fallback_with_no_cards_left_is_an_invariant_violation():
    state = _state()
    for c in state.ai.cards:
        c.is_used = True
        c.is_revealed_to_opponent = True
    with pytest.raises(InvariantViolation):
        fallback_move("BATTLE", state.ai, state.user)
    with pytest.raises(InvariantViolation):
        request_move(FlakyProvider({"BATTLE"}), "BATTLE", state.ai, state.user, 9)
