from __future__ import annotations

from typing import Optional

from .types import Card, Player, TokenType

# Pure legality predicates. The check_* variants return a rejection reason
# (None when legal) so callers can re-prompt instead of aborting.


def check_place_token(card: Optional[Card], token_type: TokenType) -> Optional[str]:
    if card is None:
        return "Unknown card"
    if card.is_used:
        return f"Card {card.id} has already been played"
    if token_type == "minus" and card.base_value + card.plus_count - card.minus_count - 1 < 0:
        return f"A -1 token on {card.id} would make its value negative"
    return None


def check_place_token_pair(player: Player, plus_id: Optional[str], minus_id: Optional[str]) -> Optional[str]:
    if not plus_id or not minus_id:
        return "Place exactly one +1 and one -1 token"
    plus_card = player.card(plus_id)
    minus_card = player.card(minus_id)
    if plus_card is None:
        return f"Unknown card {plus_id}"
    if minus_card is None:
        return f"Unknown card {minus_id}"
    reason = check_place_token(plus_card, "plus")
    if reason is not None:
        return reason
    if plus_id == minus_id:
        # Both tokens on one card net to zero; only the used check applies.
        return None
    return check_place_token(minus_card, "minus")


def check_reveal(card: Optional[Card]) -> Optional[str]:
    if card is None:
        return "Unknown card"
    if card.is_used:
        return f"Card {card.id} has already been played"
    if card.is_revealed_to_opponent:
        return f"Card {card.id} is already revealed"
    return None


def check_play(card: Optional[Card]) -> Optional[str]:
    if card is None:
        return "Unknown card"
    if card.is_used:
        return f"Card {card.id} has already been played"
    return None


def can_place_token(card: Card, token_type: TokenType) -> bool:
    return check_place_token(card, token_type) is None


def can_place_token_pair(player: Player, plus_id: Optional[str], minus_id: Optional[str]) -> bool:
    return check_place_token_pair(player, plus_id, minus_id) is None


def can_reveal(card: Card) -> bool:
    return check_reveal(card) is None


def can_play(card: Card) -> bool:
    return check_play(card) is None
