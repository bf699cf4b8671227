from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, cast
import random

from .ai import HeuristicProvider
from .errors import IllegalMoveError, InvariantViolation
from .provider import FallbackProvider, MoveProvider, request_move
from .round import (
    apply_placement,
    apply_reveal,
    check_battle_choice,
    new_player,
    remaining_counts,
    resolve_battle,
    reveal_plan,
)
from .rules import check_place_token_pair
from .types import (
    BASE_VALUES,
    ROUNDS,
    Card,
    HistoryItem,
    PendingAction,
    PendingKind,
    Phase,
    Player,
    Verdict,
)

AiKind = Literal["heuristic", "fallback"]


def _append_log(state: "GameState", msg: str) -> None:
    state.logs.append(msg)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise InvariantViolation(msg)


@dataclass
class GameConfig:
    user_name: str = "You"
    ai_name: str = "AI"
    ai_kind: AiKind = "heuristic"
    seed: Optional[int] = None
    # Explicit deal orders (permutations of 1..9); shuffled from seed when None
    user_order: Optional[List[int]] = None
    ai_order: Optional[List[int]] = None


@dataclass
class GameState:
    cfg: GameConfig
    user: Player
    ai: Player
    round: int = 1
    phase: Phase = "placement"
    history: List[HistoryItem] = field(default_factory=list)
    verdict: Optional[Verdict] = None
    logs: List[str] = field(default_factory=list)
    # Event system
    pending: List[PendingAction] = field(default_factory=list)
    _next_action_seq: int = 1
    # Human commitments for the current round, held until the opponent's
    # matching move is in hand
    _round_ctx: Dict[str, Any] = field(default_factory=dict)
    # Opponent used when step/resolve get no explicit provider; built on first use
    _provider: Optional[MoveProvider] = field(default=None, repr=False, compare=False)


def provider_for(cfg: GameConfig) -> MoveProvider:
    if cfg.ai_kind == "fallback":
        return FallbackProvider()
    return HeuristicProvider(seed=cfg.seed)


# --- Match controller ---

def start_match(cfg: GameConfig) -> GameState:
    rng = random.Random(cfg.seed)
    user_order = list(cfg.user_order) if cfg.user_order is not None else rng.sample(BASE_VALUES, len(BASE_VALUES))
    ai_order = list(cfg.ai_order) if cfg.ai_order is not None else rng.sample(BASE_VALUES, len(BASE_VALUES))
    state = GameState(
        cfg=cfg,
        user=new_player("user", cfg.user_name, "H", user_order),
        ai=new_player("ai", cfg.ai_name, "AI", ai_order),
    )
    _append_log(state, "ROUND_START: 1")
    return state


def compute_verdict(user: Player, ai: Player) -> Verdict:
    """Most rounds won; on a tie the lower winning raw sum; else a draw."""
    if user.score != ai.score:
        return "user" if user.score > ai.score else "ai"
    if user.win_raw_sum != ai.win_raw_sum:
        return "user" if user.win_raw_sum < ai.win_raw_sum else "ai"
    return "draw"


def _apply_round_outcome(state: GameState, outcome: HistoryItem) -> None:
    _require(state.phase == "round_result", f"outcome applied in phase {state.phase}")
    _require(outcome.round == state.round, f"outcome for round {outcome.round} during round {state.round}")
    _require(len(state.history) == state.round - 1, "history out of step with round counter")
    state.history.append(outcome)
    if outcome.winner == "user":
        state.user.score += 1
        state.user.win_raw_sum += outcome.user_card_value
    elif outcome.winner == "ai":
        state.ai.score += 1
        state.ai.win_raw_sum += outcome.ai_card_value
    left = ROUNDS - state.round
    _require(remaining_counts([state.user, state.ai]) == [left, left], "each side must consume one card per round")


def advance_round(state: GameState, outcome: HistoryItem) -> Optional[Verdict]:
    """Record a resolved round, then start the next one or settle the match.

    Returns the verdict once the last round is in, else None.
    """
    _apply_round_outcome(state, outcome)
    if state.round >= ROUNDS:
        state.verdict = compute_verdict(state.user, state.ai)
        state.phase = "final"
        _append_log(
            state,
            f"MATCH_RESULT: {state.verdict} "
            f"(score {state.user.score}-{state.ai.score}, raw {state.user.win_raw_sum}-{state.ai.win_raw_sum})",
        )
        return state.verdict
    state.round += 1
    state.phase = "placement"
    state._round_ctx = {}
    _append_log(state, f"ROUND_START: {state.round}")
    return None


def is_match_over(state: GameState) -> bool:
    return state.phase == "final"


# --- Event system: step + resolve ---

def _next_id(state: GameState) -> str:
    i = state._next_action_seq
    state._next_action_seq += 1
    return f"a{i}"


def _push_pending(state: GameState, *, kind: PendingKind, payload: Dict[str, Any]) -> PendingAction:
    pa = PendingAction(kind=kind, playerId=state.user.id, payload=payload, id=_next_id(state))
    state.pending.append(pa)
    return pa


def _placement_payload(state: GameState) -> Dict[str, Any]:
    unused = state.user.unused_cards()
    return {
        "round": state.round,
        # Every unused card can take either token in some legal pair;
        # the pair itself is checked on resolve
        "choices": [c.id for c in unused],
    }


def _opponent_reveal(state: GameState, provider: MoveProvider) -> None:
    if not state.user.hidden_unused_cards():
        _append_log(state, "REVEAL_SKIP: ai (nothing hidden)")
        return
    move, fallback = request_move(provider, "REVEAL", state.ai, state.user, state.round)
    if fallback:
        _append_log(state, "AI_FALLBACK: REVEAL")
    if move is None:
        _append_log(state, "REVEAL_SKIP: ai (nothing hidden)")
        return
    apply_reveal(state.user, move["revealId"])
    _append_log(state, f"AI_REVEAL: {move['revealId']}")


def step(state: GameState, provider: Optional[MoveProvider] = None) -> None:
    """
    Progress the round state machine until either:
    - a new PendingAction for the human is created, OR
    - the match is over.
    Opponent moves are requested from provider synchronously.
    """
    if state.pending or state.phase == "final":
        return
    if provider is None:
        if state._provider is None:
            state._provider = provider_for(state.cfg)
        provider = state._provider
    ctx = state._round_ctx
    while True:
        if state.phase == "placement":
            if "user_tokens" not in ctx:
                _push_pending(state, kind="place_tokens", payload=_placement_payload(state))
                return
            move, fallback = request_move(provider, "PLACEMENT", state.ai, state.user, state.round)
            assert move is not None
            if fallback:
                _append_log(state, "AI_FALLBACK: PLACEMENT")
            plus_id, minus_id = ctx["user_tokens"]
            apply_placement(state.user, plus_id, minus_id)
            apply_placement(state.ai, move["plusId"], move["minusId"])
            _append_log(state, f"USER_TOKENS: +1 {plus_id}, -1 {minus_id}")
            _append_log(state, f"AI_TOKENS: +1 {move['plusId']}, -1 {move['minusId']}")
            ctx["reveal_plan"] = reveal_plan(state.user, state.ai)
            state.phase = "reveal"
        elif state.phase == "reveal":
            plan = ctx.get("reveal_plan", "both")
            if plan == "skip":
                _append_log(state, "REVEAL_SKIP: both (nothing hidden)")
            elif plan == "ai_only":
                _append_log(state, "REVEAL_SKIP: user (all opponent cards known)")
                _opponent_reveal(state, provider)
            else:
                if "user_reveal" not in ctx:
                    choices = [c.id for c in state.ai.hidden_unused_cards()]
                    _push_pending(state, kind="reveal_card", payload={"round": state.round, "choices": choices})
                    return
                _opponent_reveal(state, provider)
            state.phase = "battle"
        elif state.phase == "battle":
            if "user_play" not in ctx:
                choices = [c.id for c in state.user.unused_cards()]
                _push_pending(state, kind="play_card", payload={"round": state.round, "choices": choices})
                return
            move, fallback = request_move(provider, "BATTLE", state.ai, state.user, state.round)
            assert move is not None
            if fallback:
                _append_log(state, "AI_FALLBACK: BATTLE")
            outcome = resolve_battle(state.round, state.user, state.ai, ctx["user_play"], move["playId"])
            state.phase = "round_result"
            _append_log(
                state,
                f"BATTLE: {ctx['user_play']}={outcome.user_final_value} vs {move['playId']}={outcome.ai_final_value}",
            )
            _append_log(state, f"ROUND_RESULT: {outcome.round} {outcome.winner}")
            advance_round(state, outcome)
            if state.phase == "final":
                return
            ctx = state._round_ctx
        else:
            raise InvariantViolation(f"step() in unexpected phase {state.phase}")


def _card_id(response: Mapping[str, Any], key: str) -> Optional[str]:
    val = response.get(key)
    if val is None:
        return None
    if not isinstance(val, str):
        raise IllegalMoveError(f"{key} must be a card id")
    return val


def resolve(
    state: GameState,
    actionId: str,
    response: Mapping[str, Any],
    provider: Optional[MoveProvider] = None,
) -> None:
    """
    Validate a human response to a PendingAction. An illegal response raises
    IllegalMoveError and leaves the action pending; a legal one is consumed
    and progression continues (via step).
    """
    idx = next((i for i, a in enumerate(state.pending) if a.id == actionId), -1)
    if idx < 0:
        raise KeyError(f"Pending action not found: {actionId}")
    pa = state.pending[idx]
    ctx = state._round_ctx

    if pa.kind == "place_tokens":
        plus_id = _card_id(response, "plusId")
        minus_id = _card_id(response, "minusId")
        reason = check_place_token_pair(state.user, plus_id, minus_id)
        if reason is not None:
            raise IllegalMoveError(reason)
        ctx["user_tokens"] = [plus_id, minus_id]
    elif pa.kind == "reveal_card":
        reveal_id = _card_id(response, "revealId")
        apply_reveal(state.ai, reveal_id)
        ctx["user_reveal"] = reveal_id
        _append_log(state, f"USER_REVEAL: {reveal_id}")
    elif pa.kind == "play_card":
        play_id = _card_id(response, "playId")
        check_battle_choice(state.user, play_id)
        ctx["user_play"] = play_id
    else:
        raise InvariantViolation(f"Unknown pending kind {pa.kind}")

    state.pending.pop(idx)
    step(state, provider)


# --- JSON serialization (pure, no I/O) ---

def _card_to_obj(card: Card, redact: bool) -> Dict[str, object]:
    hidden = redact and not card.is_used and not card.is_revealed_to_opponent
    return {
        "id": card.id,
        "baseValue": None if hidden else card.base_value,
        "plusCount": card.plus_count,
        "minusCount": card.minus_count,
        "finalValue": None if hidden else card.final_value,
        "isUsed": card.is_used,
        "isRevealedToOpponent": card.is_revealed_to_opponent,
    }


def _player_to_obj(p: Player, redact: bool) -> Dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "kind": p.kind,
        "score": p.score,
        "winRawSum": p.win_raw_sum,
        "cards": [_card_to_obj(c, redact) for c in p.cards],
    }


def _history_to_obj(h: HistoryItem) -> Dict[str, object]:
    return {
        "round": h.round,
        "userCardValue": h.user_card_value,
        "userFinalValue": h.user_final_value,
        "aiCardValue": h.ai_card_value,
        "aiFinalValue": h.ai_final_value,
        "winner": h.winner,
    }


def to_json(state: GameState, reveal_hidden: bool = False) -> Dict[str, object]:
    """Snapshot of the match.

    By default the opponent's unrevealed, unused cards carry no value so the
    result can be shown to the human; reveal_hidden=True gives a full save.
    """
    pendings: List[Dict[str, object]] = []
    for pa in state.pending:
        pendings.append({
            "id": pa.id,
            "kind": pa.kind,
            "playerId": pa.playerId,
            "payload": pa.payload,
        })
    return {
        "schemaVersion": 1,
        "config": {
            "userName": state.cfg.user_name,
            "aiName": state.cfg.ai_name,
            "aiKind": state.cfg.ai_kind,
            "seed": state.cfg.seed,
        },
        "round": state.round,
        "phase": state.phase,
        "players": [_player_to_obj(state.user, False), _player_to_obj(state.ai, not reveal_hidden)],
        "history": [_history_to_obj(h) for h in state.history],
        "verdict": state.verdict,
        "logs": list(state.logs),
        "pending": pendings,
        "nextActionSeq": state._next_action_seq,
        "roundCtx": dict(state._round_ctx),
    }


def _obj_to_player(obj: object, pid: str) -> Player:
    _require(isinstance(obj, dict), "player must be an object")
    obj = cast(Dict[str, Any], obj)
    _require(obj.get("id") == pid, f"expected player {pid}")
    cards_obj = obj.get("cards")
    _require(isinstance(cards_obj, list) and len(cards_obj) == len(BASE_VALUES), "each player holds 9 cards")
    order: List[int] = []
    for co in cards_obj:
        _require(isinstance(co, dict), "card must be an object")
        _require(isinstance(co.get("baseValue"), int), f"card {co.get('id')} has no value (redacted snapshot?)")
        order.append(int(co["baseValue"]))
    p = new_player(cast(Any, pid), str(obj.get("name", "")), "H" if pid == "user" else "AI", order)
    for card, co in zip(p.cards, cards_obj):
        _require(co.get("id") == card.id, f"card id {co.get('id')} out of deal order")
        card.plus_count = int(co.get("plusCount", 0))
        card.minus_count = int(co.get("minusCount", 0))
        card.is_used = bool(co.get("isUsed", False))
        card.is_revealed_to_opponent = bool(co.get("isRevealedToOpponent", False))
        _require(card.plus_count >= 0 and card.minus_count >= 0, f"negative token count on {card.id}")
        _require(card.final_value >= 0, f"{card.id} has a negative final value")
        _require(not card.is_used or card.is_revealed_to_opponent, f"played card {card.id} must be revealed")
    p.score = int(obj.get("score", 0))
    p.win_raw_sum = int(obj.get("winRawSum", 0))
    return p


def from_json(data: Dict[str, object]) -> GameState:
    _require(isinstance(data, dict), "Data must be a dict")
    _require(data.get("schemaVersion") == 1, "Unsupported schemaVersion")
    cfgd = data.get("config")
    _require(isinstance(cfgd, dict), "Missing config")
    cfgd = cast(Dict[str, Any], cfgd)
    ai_kind = cfgd.get("aiKind", "heuristic")
    _require(ai_kind in ("heuristic", "fallback"), f"Unknown aiKind {ai_kind}")

    players = data.get("players")
    _require(isinstance(players, list) and len(players) == 2, "players list of two required")
    players = cast(List[object], players)
    user = _obj_to_player(players[0], "user")
    ai = _obj_to_player(players[1], "ai")

    cfg = GameConfig(
        user_name=user.name,
        ai_name=ai.name,
        ai_kind=cast(AiKind, ai_kind),
        seed=cfgd.get("seed"),
        user_order=[c.base_value for c in user.cards],
        ai_order=[c.base_value for c in ai.cards],
    )
    state = GameState(cfg=cfg, user=user, ai=ai)

    rnd = data.get("round")
    _require(isinstance(rnd, int) and 1 <= rnd <= ROUNDS, "round must be 1..9")
    state.round = cast(int, rnd)
    phase = data.get("phase")
    _require(phase in ("placement", "reveal", "battle", "round_result", "final"), f"Unknown phase {phase}")
    state.phase = cast(Phase, phase)

    hist = data.get("history", [])
    _require(isinstance(hist, list), "history must be a list")
    for h in cast(List[Dict[str, Any]], hist):
        _require(h.get("winner") in ("user", "ai", "tie"), "invalid history winner")
        state.history.append(HistoryItem(
            round=int(h["round"]),
            user_card_value=int(h["userCardValue"]),
            user_final_value=int(h["userFinalValue"]),
            ai_card_value=int(h["aiCardValue"]),
            ai_final_value=int(h["aiFinalValue"]),
            winner=h["winner"],
        ))
    done = ROUNDS if state.phase == "final" else state.round - 1
    _require(len(state.history) == done, "history length does not match round counter")
    for p in (user, ai):
        _require(len(p.unused_cards()) == ROUNDS - done, f"{p.id} has the wrong number of used cards")
        _require(p.score == sum(1 for h in state.history if h.winner == p.id), f"{p.id} score disagrees with history")
    _require(
        user.win_raw_sum == sum(h.user_card_value for h in state.history if h.winner == "user"),
        "user winRawSum disagrees with history",
    )
    _require(
        ai.win_raw_sum == sum(h.ai_card_value for h in state.history if h.winner == "ai"),
        "ai winRawSum disagrees with history",
    )

    verdict = data.get("verdict")
    _require(verdict in (None, "user", "ai", "draw"), "invalid verdict")
    state.verdict = cast(Optional[Verdict], verdict)

    logs_obj = data.get("logs", [])
    _require(isinstance(logs_obj, list), "logs must be a list")
    state.logs = [str(x) for x in cast(List[object], logs_obj)]

    ctx = data.get("roundCtx", {})
    _require(isinstance(ctx, dict), "roundCtx must be an object")
    state._round_ctx = dict(cast(Dict[str, Any], ctx))
    state._next_action_seq = int(cast(Any, data.get("nextActionSeq", 1)))

    p_list = data.get("pending", [])
    if isinstance(p_list, list):
        for itm in p_list:
            if not isinstance(itm, dict):
                continue
            kind = str(itm.get("kind", ""))
            _require(kind in ("place_tokens", "reveal_card", "play_card"), f"Unknown pending kind {kind}")
            payload = itm.get("payload", {})
            state.pending.append(PendingAction(
                kind=cast(PendingKind, kind),
                playerId=str(itm.get("playerId", "user")),
                payload=payload if isinstance(payload, dict) else {},
                id=str(itm.get("id", "")),
            ))
    return state
