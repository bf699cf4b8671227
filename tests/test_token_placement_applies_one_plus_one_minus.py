import pytest

from engine import IllegalMoveError, apply_placement, new_player


def _totals(p):
    return sum(c.plus_count for c in p.cards), sum(c.minus_count for c in p.cards)


def test_placement_on_two_cards():
    p = new_player("ai", "AI", "AI", [5, 3, 9, 1, 2, 4, 6, 7, 8])
    apply_placement(p, "ai-1", "ai-2")
    assert p.card("ai-1").final_value == 6
    assert p.card("ai-2").final_value == 2
    assert _totals(p) == (1, 1)


def test_placement_on_same_card_nets_zero_but_counts_both():
    p = new_player("user", "You", "H", list(range(1, 10)))
    apply_placement(p, "user-3", "user-3")
    c = p.card("user-3")
    assert (c.plus_count, c.minus_count) == (1, 1)
    assert c.final_value == c.base_value == 3
    assert c.tokens == 0
    assert _totals(p) == (1, 1)


def test_illegal_placement_mutates_nothing():
    p = new_player("user", "You", "H", list(range(1, 10)))
    apply_placement(p, "user-9", "user-1")
    before = [(c.plus_count, c.minus_count) for c in p.cards]
    with pytest.raises(IllegalMoveError) as ei:
        apply_placement(p, "user-8", "user-1")
    assert "negative" in ei.value.reason
    assert [(c.plus_count, c.minus_count) for c in p.cards] == before


def test_tokens_accumulate_across_rounds():
    p = new_player("user", "You", "H", list(range(1, 10)))
    for _ in range(3):
        apply_placement(p, "user-5", "user-9")
    assert p.card("user-5").final_value == 8
    assert p.card("user-9").final_value == 6
    assert _totals(p) == (3, 3)
