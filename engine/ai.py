from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
import random

from .types import BASE_VALUES, ProviderPhase


@dataclass
class ExplainInfo:
    phase: ProviderPhase
    round: int
    pick: Dict[str, str]
    pick_reason: str


def _final(c: Mapping[str, Any]) -> int:
    return int(c["baseValue"]) + int(c["plusCount"]) - int(c["minusCount"])


def _tokens(c: Mapping[str, Any]) -> int:
    return int(c.get("plusCount", 0)) - int(c.get("minusCount", 0))


def estimate_opponent_values(opponent_cards: List[Dict[str, Any]]) -> Dict[str, float]:
    """Expected final value of each unused opponent card.

    Known cards count at face value; hidden ones at the mean of the base
    values nobody has seen yet, plus their public tokens.
    """
    seen = {int(c["baseValue"]) for c in opponent_cards if "baseValue" in c}
    pool = [v for v in BASE_VALUES if v not in seen]
    mean_unknown = sum(pool) / len(pool) if pool else 0.0
    out: Dict[str, float] = {}
    for c in opponent_cards:
        if c.get("used"):
            continue
        if "baseValue" in c:
            out[c["id"]] = float(_final(c))
        else:
            out[c["id"]] = mean_unknown + _tokens(c)
    return out


class HeuristicProvider:
    """Greedy opponent built only on what its side of the table can see."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self.rng = random.Random(seed)
        self.explain: Optional[ExplainInfo] = None

    def _pick(self, ids: List[str]) -> str:
        return ids[0] if len(ids) == 1 else self.rng.choice(ids)

    def __call__(
        self,
        phase: ProviderPhase,
        own_cards: List[Dict[str, Any]],
        opponent_cards: List[Dict[str, Any]],
        round_no: int,
    ) -> Mapping[str, Any]:
        if phase == "PLACEMENT":
            move, reason = self._placement(own_cards)
        elif phase == "REVEAL":
            move, reason = self._reveal(opponent_cards)
        else:
            move, reason = self._battle(own_cards, opponent_cards)
        self.explain = ExplainInfo(phase=phase, round=round_no, pick=move, pick_reason=reason)
        return move

    def _placement(self, own_cards: List[Dict[str, Any]]):
        best = max(_final(c) for c in own_cards)
        plus_id = self._pick([c["id"] for c in own_cards if _final(c) == best])
        minus_pool = [c for c in own_cards if c["id"] != plus_id and _final(c) >= 1]
        if not minus_pool:
            return {"plusId": plus_id, "minusId": plus_id}, "AI_PICK: no card can take -1 alone; tokens cancel"
        worst = min(_final(c) for c in minus_pool)
        minus_id = self._pick([c["id"] for c in minus_pool if _final(c) == worst])
        return {"plusId": plus_id, "minusId": minus_id}, f"AI_PICK: +1 on strongest ({best}), -1 on weakest ({worst})"

    def _reveal(self, opponent_cards: List[Dict[str, Any]]):
        hidden = [c for c in opponent_cards if not c.get("revealed")]
        if not hidden:
            return {}, "AI_PICK: nothing to reveal"
        top = max(_tokens(c) for c in hidden)
        # ties go to the lowest slot
        reveal_id = [c["id"] for c in hidden if _tokens(c) == top][0]
        return {"revealId": reveal_id}, f"AI_PICK: reveal hidden card with token bonus {top:+d}"

    def _battle(self, own_cards: List[Dict[str, Any]], opponent_cards: List[Dict[str, Any]]):
        est = estimate_opponent_values(opponent_cards)
        threat = max(est.values()) if est else 0.0
        winners = [c for c in own_cards if _final(c) > threat]
        if winners:
            # Cheapest winner; lower base value keeps the tie-break sum small.
            choice = min(winners, key=lambda c: (_final(c), int(c["baseValue"])))
            return {"playId": choice["id"]}, f"AI_PICK: {_final(choice)} beats expected max {threat:.2f}"
        choice = min(own_cards, key=lambda c: (_final(c), int(c["baseValue"])))
        return {"playId": choice["id"]}, f"AI_PICK: sacrifice {_final(choice)} against expected max {threat:.2f}"
