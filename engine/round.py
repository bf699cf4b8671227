from __future__ import annotations

from typing import List, Literal, Optional, Sequence

from .errors import IllegalMoveError, InvariantViolation
from .rules import check_place_token_pair, check_play, check_reveal
from .types import BASE_VALUES, Card, HistoryItem, Player, PlayerId, PlayerKind, Winner

RevealPlan = Literal["skip", "ai_only", "both"]


def new_player(pid: PlayerId, name: str, kind: PlayerKind, order: Sequence[int]) -> Player:
    values = [int(v) for v in order]
    if sorted(values) != BASE_VALUES:
        raise ValueError(f"Card order must be a permutation of 1..9, got {values}")
    cards = [Card(id=f"{pid}-{slot}", base_value=v) for slot, v in enumerate(values, start=1)]
    return Player(id=pid, name=name, kind=kind, cards=cards)


def apply_placement(player: Player, plus_id: Optional[str], minus_id: Optional[str]) -> None:
    """Apply one +1 and one -1 token. Both may land on the same card."""
    reason = check_place_token_pair(player, plus_id, minus_id)
    if reason is not None:
        raise IllegalMoveError(reason)
    plus_card = player.card(str(plus_id))
    minus_card = player.card(str(minus_id))
    assert plus_card is not None and minus_card is not None
    plus_card.plus_count += 1
    minus_card.minus_count += 1
    if minus_card.final_value < 0:
        raise InvariantViolation(f"{minus_card.id} dropped below zero")


def reveal_plan(user: Player, ai: Player) -> RevealPlan:
    """Decide how much of the reveal phase runs this round.

    - "skip": both sides have nothing hidden left.
    - "ai_only": every remaining opponent card is already known to the
      human, so only the opponent reveals.
    - "both": the human reveals first; the opponent follows if the human
      still has a hidden card afterwards.
    """
    all_ai_revealed = not ai.hidden_unused_cards()
    all_user_revealed = not user.hidden_unused_cards()
    if all_ai_revealed and all_user_revealed:
        return "skip"
    if all_ai_revealed:
        return "ai_only"
    return "both"


def apply_reveal(target: Player, card_id: Optional[str]) -> Card:
    card = target.card(card_id) if card_id else None
    reason = check_reveal(card) if card_id else "Choose a card to reveal"
    if reason is not None:
        raise IllegalMoveError(reason)
    assert card is not None
    card.is_revealed_to_opponent = True
    return card


def check_battle_choice(player: Player, card_id: Optional[str]) -> Card:
    if not card_id:
        raise IllegalMoveError("Choose a card to play")
    card = player.card(card_id)
    reason = check_play(card)
    if reason is not None:
        raise IllegalMoveError(reason)
    assert card is not None
    return card


def resolve_battle(round_no: int, user: Player, ai: Player, user_card_id: str, ai_card_id: str) -> HistoryItem:
    """Consume both committed cards and compare their final values.

    Scores are not touched here; the returned item is the round outcome
    the match controller applies.
    """
    uc = check_battle_choice(user, user_card_id)
    ac = check_battle_choice(ai, ai_card_id)
    for c in (uc, ac):
        c.is_used = True
        c.is_revealed_to_opponent = True
    winner: Winner = "tie"
    if uc.final_value > ac.final_value:
        winner = "user"
    elif ac.final_value > uc.final_value:
        winner = "ai"
    return HistoryItem(
        round=round_no,
        user_card_value=uc.base_value,
        user_final_value=uc.final_value,
        ai_card_value=ac.base_value,
        ai_final_value=ac.final_value,
        winner=winner,
    )


def remaining_counts(players: List[Player]) -> List[int]:
    return [len(p.unused_cards()) for p in players]
