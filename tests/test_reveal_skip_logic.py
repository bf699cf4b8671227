from typing import Any, Dict, List, Tuple

from engine import FallbackProvider, GameConfig, GameState, reveal_plan, resolve, start_match, step


class RecordingProvider(FallbackProvider):
    def __init__(self) -> None:
        self.calls: List[Tuple[str, int]] = []

    def __call__(self, phase, own_cards, opponent_cards, round_no) -> Dict[str, Any]:
        self.calls.append((phase, round_no))
        return dict(super().__call__(phase, own_cards, opponent_cards, round_no))


def _new_state() -> GameState:
    cfg = GameConfig(ai_kind="fallback", user_order=list(range(1, 10)), ai_order=list(range(1, 10)))
    return start_match(cfg)


def _place_tokens(state: GameState, provider: RecordingProvider) -> None:
    step(state, provider)
    pa = state.pending[0]
    assert pa.kind == "place_tokens"
    resolve(state, pa.id, {"plusId": "user-5", "minusId": "user-6"}, provider)


def test_reveal_plan_cases():
    state = _new_state()
    assert reveal_plan(state.user, state.ai) == "both"
    for c in state.ai.cards:
        c.is_revealed_to_opponent = True
    assert reveal_plan(state.user, state.ai) == "ai_only"
    for c in state.user.cards:
        c.is_revealed_to_opponent = True
    assert reveal_plan(state.user, state.ai) == "skip"
    for c in state.ai.cards:
        c.is_revealed_to_opponent = False
    assert reveal_plan(state.user, state.ai) == "both"


def test_human_not_prompted_when_all_opponent_cards_known():
    state = _new_state()
    provider = RecordingProvider()
    for c in state.ai.cards:
        c.is_revealed_to_opponent = True
    _place_tokens(state, provider)
    # Straight to battle for the human; the opponent still revealed once
    assert [pa.kind for pa in state.pending] == ["play_card"]
    assert [ph for ph, _ in provider.calls] == ["PLACEMENT", "REVEAL"]
    assert state.user.card("user-1").is_revealed_to_opponent
    assert sum(c.is_revealed_to_opponent for c in state.user.cards) == 1
    assert any(ln.startswith("REVEAL_SKIP: user") for ln in state.logs)


def test_opponent_reveal_skipped_when_human_has_nothing_hidden():
    state = _new_state()
    provider = RecordingProvider()
    for c in state.user.cards:
        c.is_revealed_to_opponent = True
    _place_tokens(state, provider)
    pa = state.pending[0]
    assert pa.kind == "reveal_card"
    assert pa.payload["choices"] == [c.id for c in state.ai.cards]
    resolve(state, pa.id, {"revealId": "ai-7"}, provider)
    assert state.ai.card("ai-7").is_revealed_to_opponent
    assert [ph for ph, _ in provider.calls] == ["PLACEMENT"]
    assert state.pending[0].kind == "play_card"
    assert any(ln.startswith("REVEAL_SKIP: ai") for ln in state.logs)


def test_reveal_phase_skipped_entirely_when_both_sides_known():
    state = _new_state()
    provider = RecordingProvider()
    for c in state.user.cards + state.ai.cards:
        c.is_revealed_to_opponent = True
    _place_tokens(state, provider)
    assert state.pending[0].kind == "play_card"
    assert [ph for ph, _ in provider.calls] == ["PLACEMENT"]
    assert any(ln.startswith("REVEAL_SKIP: both") for ln in state.logs)


def test_at_most_one_reveal_per_side_per_round():
    state = _new_state()
    provider = RecordingProvider()
    _place_tokens(state, provider)
    pa = state.pending[0]
    resolve(state, pa.id, {"revealId": "ai-2"}, provider)
    assert sum(c.is_revealed_to_opponent for c in state.ai.cards) == 1
    assert sum(c.is_revealed_to_opponent for c in state.user.cards) == 1
    assert [ph for ph, _ in provider.calls].count("REVEAL") == 1
