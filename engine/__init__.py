from .types import (
    BASE_VALUES,
    ROUNDS,
    Card,
    HistoryItem,
    PendingAction,
    Player,
    PlayerKind,
    ProviderPhase,
    Verdict,
    Winner,
)
from .errors import IllegalMoveError, InvariantViolation, ProviderFailure
from .rules import (
    can_place_token,
    can_place_token_pair,
    can_play,
    can_reveal,
    check_place_token,
    check_place_token_pair,
    check_play,
    check_reveal,
)
from .provider import (
    FallbackProvider,
    MoveProvider,
    fallback_move,
    opponent_view,
    own_view,
    parse_move,
    request_move,
)
from .ai import ExplainInfo, HeuristicProvider, estimate_opponent_values
from .round import apply_placement, apply_reveal, new_player, resolve_battle, reveal_plan
from .core import (
    GameConfig,
    GameState,
    provider_for,
    start_match,
    advance_round,
    compute_verdict,
    is_match_over,
    step,
    resolve,
    to_json,
    from_json,
)

__all__ = [
    "BASE_VALUES",
    "ROUNDS",
    "Card",
    "HistoryItem",
    "PendingAction",
    "Player",
    "PlayerKind",
    "ProviderPhase",
    "Verdict",
    "Winner",
    "IllegalMoveError",
    "InvariantViolation",
    "ProviderFailure",
    "can_place_token",
    "can_place_token_pair",
    "can_play",
    "can_reveal",
    "check_place_token",
    "check_place_token_pair",
    "check_play",
    "check_reveal",
    "FallbackProvider",
    "MoveProvider",
    "fallback_move",
    "opponent_view",
    "own_view",
    "parse_move",
    "request_move",
    "ExplainInfo",
    "HeuristicProvider",
    "estimate_opponent_values",
    "apply_placement",
    "apply_reveal",
    "new_player",
    "resolve_battle",
    "reveal_plan",
    "GameConfig",
    "GameState",
    "provider_for",
    "start_match",
    "advance_round",
    "compute_verdict",
    "is_match_over",
    "step",
    "resolve",
    "to_json",
    "from_json",
]
