from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, TypeAlias

ROUNDS: int = 9
BASE_VALUES: List[int] = list(range(1, 10))

PlayerId = Literal["user", "ai"]
PlayerKind = Literal["H", "AI"]
TokenType = Literal["plus", "minus"]
Winner = Literal["user", "ai", "tie"]
Verdict = Literal["user", "ai", "draw"]
Phase = Literal["placement", "reveal", "battle", "round_result", "final"]
ProviderPhase = Literal["PLACEMENT", "REVEAL", "BATTLE"]

# Alias for all allowed pending kinds for better type reuse
PendingKind: TypeAlias = Literal[
    "place_tokens",
    "reveal_card",
    "play_card",
]


@dataclass
class Card:
    id: str
    base_value: int  # 1..9, unique within the owner's set
    plus_count: int = 0
    minus_count: int = 0
    is_used: bool = False
    is_revealed_to_opponent: bool = False

    @property
    def tokens(self) -> int:
        return self.plus_count - self.minus_count

    @property
    def final_value(self) -> int:
        return self.base_value + self.plus_count - self.minus_count


@dataclass(frozen=True)
class HistoryItem:
    round: int
    user_card_value: int
    user_final_value: int
    ai_card_value: int
    ai_final_value: int
    winner: Winner


# Engine-driven pending action descriptor for external resolution
@dataclass
class PendingAction:
    kind: PendingKind
    playerId: str
    payload: Dict[str, Any]
    id: str  # unique id for correlation


@dataclass
class Player:
    id: PlayerId
    name: str
    kind: PlayerKind
    cards: List[Card]
    score: int = 0
    win_raw_sum: int = 0  # sum of base values of cards that won their round

    def card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self.cards if c.id == card_id), None)

    def unused_cards(self) -> List[Card]:
        return [c for c in self.cards if not c.is_used]

    def hidden_unused_cards(self) -> List[Card]:
        return [c for c in self.cards if not c.is_used and not c.is_revealed_to_opponent]
