from typing import Any, Dict, List

from engine import FallbackProvider, GameConfig, opponent_view, own_view, resolve, start_match, step


class SpyProvider(FallbackProvider):
    def __init__(self) -> None:
        self.seen: List[Dict[str, Any]] = []

    def __call__(self, phase, own_cards, opponent_cards, round_no):
        self.seen.append({"phase": phase, "own": own_cards, "opp": opponent_cards, "round": round_no})
        return super().__call__(phase, own_cards, opponent_cards, round_no)


def test_opponent_view_hides_unrevealed_values():
    state = start_match(GameConfig(seed=7))
    state.user.cards[2].is_revealed_to_opponent = True
    view = opponent_view(state.user)
    assert [c["id"] for c in view] == [c.id for c in state.user.cards]
    for item, card in zip(view, state.user.cards):
        if card.is_revealed_to_opponent:
            assert item["baseValue"] == card.base_value and item["revealed"]
        else:
            assert "baseValue" not in item and not item["revealed"]
        assert set(item) >= {"id", "revealed", "plusCount", "minusCount"}


def test_own_view_lists_only_unused_cards():
    state = start_match(GameConfig(seed=7))
    state.ai.cards[0].is_used = True
    ids = [c["id"] for c in own_view(state.ai)]
    assert state.ai.cards[0].id not in ids and len(ids) == 8


def test_card_ids_do_not_encode_values():
    state = start_match(GameConfig(seed=11))
    # ids are deal slots, so a shuffled deal breaks any id/value correspondence
    assert [c.id for c in state.user.cards] == [f"user-{i}" for i in range(1, 10)]
    assert [c.base_value for c in state.user.cards] != list(range(1, 10))


def test_provider_never_receives_hidden_values_during_a_match():
    state = start_match(GameConfig(ai_kind="fallback", seed=5))
    spy = SpyProvider()
    step(state, spy)
    while state.pending:
        pa = state.pending[0]
        if pa.kind == "place_tokens":
            resp = {"plusId": pa.payload["choices"][-1], "minusId": pa.payload["choices"][-1]}
        elif pa.kind == "reveal_card":
            resp = {"revealId": pa.payload["choices"][-1]}
        else:
            # the battle request goes out before the human's pick is applied
            hidden_before = {c.id for c in state.user.hidden_unused_cards()}
            resp = {"playId": pa.payload["choices"][-1]}
        resolve(state, pa.id, resp, spy)
        if pa.kind == "play_card":
            battle = [s for s in spy.seen if s["phase"] == "BATTLE"][-1]
            for item in battle["opp"]:
                if item["id"] in hidden_before:
                    assert "baseValue" not in item
    assert len(spy.seen) >= 18
    values = {c.id: c.base_value for c in state.user.cards}
    for call in spy.seen:
        for item in call["opp"]:
            assert item["id"].startswith("user-")
            if "baseValue" in item:
                assert item["baseValue"] == values[item["id"]]
        assert all(item["id"].startswith("ai-") for item in call["own"])
