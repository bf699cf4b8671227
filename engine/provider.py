from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .errors import InvariantViolation, ProviderFailure
from .rules import check_place_token_pair, check_play, check_reveal
from .types import Player, ProviderPhase

logger = logging.getLogger(__name__)

# (phase, own_cards, opponent_cards, round) -> {"plusId","minusId"} | {"revealId"} | {"playId"}
MoveProvider = Callable[[ProviderPhase, List[Dict[str, Any]], List[Dict[str, Any]], int], Mapping[str, Any]]

_RESPONSE_KEYS: Dict[str, Tuple[str, ...]] = {
    "PLACEMENT": ("plusId", "minusId"),
    "REVEAL": ("revealId",),
    "BATTLE": ("playId",),
}


def own_view(player: Player) -> List[Dict[str, Any]]:
    """Cards the provider may act on, with their full values."""
    return [
        {
            "id": c.id,
            "baseValue": c.base_value,
            "plusCount": c.plus_count,
            "minusCount": c.minus_count,
        }
        for c in player.unused_cards()
    ]


def opponent_view(player: Player) -> List[Dict[str, Any]]:
    """The other side's table as seen from across it.

    Tokens are public; a base value is only present once the card has been
    revealed or played.
    """
    out: List[Dict[str, Any]] = []
    for c in player.cards:
        known = c.is_revealed_to_opponent or c.is_used
        item: Dict[str, Any] = {
            "id": c.id,
            "revealed": known,
            "used": c.is_used,
            "plusCount": c.plus_count,
            "minusCount": c.minus_count,
        }
        if known:
            item["baseValue"] = c.base_value
        out.append(item)
    return out


def parse_move(phase: ProviderPhase, raw: object, own: Player, other: Player) -> Dict[str, str]:
    if not isinstance(raw, Mapping):
        raise ProviderFailure(f"{phase}: expected an object, got {type(raw).__name__}")
    move: Dict[str, str] = {}
    for key in _RESPONSE_KEYS[phase]:
        val = raw.get(key)
        if not isinstance(val, str) or not val:
            raise ProviderFailure(f"{phase}: missing or non-string {key!r}")
        move[key] = val
    if phase == "PLACEMENT":
        reason = check_place_token_pair(own, move["plusId"], move["minusId"])
    elif phase == "REVEAL":
        reason = check_reveal(other.card(move["revealId"]))
    else:
        reason = check_play(own.card(move["playId"]))
    if reason is not None:
        raise ProviderFailure(f"{phase}: {reason}")
    return move


def fallback_move(phase: ProviderPhase, own: Player, other: Player) -> Optional[Dict[str, str]]:
    """Deterministic default: always the first card, in deal order, that qualifies.

    Returns None only for REVEAL when nothing is left to reveal.
    """
    if phase == "REVEAL":
        hidden = other.hidden_unused_cards()
        if not hidden:
            return None
        move = {"revealId": hidden[0].id}
    else:
        unused = own.unused_cards()
        if not unused:
            raise InvariantViolation(f"{phase} requested for {own.id} with no unused cards")
        first = unused[0].id
        move = {"plusId": first, "minusId": first} if phase == "PLACEMENT" else {"playId": first}
    try:
        return parse_move(phase, move, own, other)
    except ProviderFailure as e:
        raise InvariantViolation(f"fallback move is illegal: {e}")


def request_move(
    provider: MoveProvider,
    phase: ProviderPhase,
    own: Player,
    other: Player,
    round_no: int,
) -> Tuple[Optional[Dict[str, str]], bool]:
    """Ask the provider for a move; on any failure substitute the fallback.

    Returns (move, used_fallback). Nothing is mutated here.
    """
    try:
        raw = provider(phase, own_view(own), opponent_view(other), round_no)
        return parse_move(phase, raw, own, other), False
    except InvariantViolation:
        raise
    except Exception as e:
        logger.warning("move provider failed in %s (round %d): %s", phase, round_no, e)
        return fallback_move(phase, own, other), True


class FallbackProvider:
    """Always picks the first eligible card; mirrors the engine fallback."""

    def __call__(
        self,
        phase: ProviderPhase,
        own_cards: List[Dict[str, Any]],
        opponent_cards: List[Dict[str, Any]],
        round_no: int,
    ) -> Mapping[str, Any]:
        if phase == "PLACEMENT":
            return {"plusId": own_cards[0]["id"], "minusId": own_cards[0]["id"]}
        if phase == "REVEAL":
            hidden = [c["id"] for c in opponent_cards if not c["revealed"]]
            return {"revealId": hidden[0]} if hidden else {}
        return {"playId": own_cards[0]["id"]}
