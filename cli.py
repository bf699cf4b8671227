from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional

from engine import (
    Card,
    GameConfig,
    GameState,
    HeuristicProvider,
    IllegalMoveError,
    PendingAction,
    Player,
    ROUNDS,
    provider_for,
    resolve,
    start_match,
    step,
)
from engine.provider import MoveProvider


# Defaults for console play
USER_NAME: str = "You"
AI_NAME: str = "AI"
AI_KIND: str = "heuristic"
SHOW_AI_REASON: bool = True


def card_label(card: Card, hide: bool) -> str:
    if card.is_used:
        return f"[{card.id}: {card.final_value} used]"
    tok = f" (+{card.plus_count}/-{card.minus_count})" if card.plus_count or card.minus_count else ""
    if hide and not card.is_revealed_to_opponent:
        return f"[{card.id}: ?{tok}]"
    shown = "" if hide else (" seen" if card.is_revealed_to_opponent else "")
    return f"[{card.id}: {card.final_value}{tok}{shown}]"


def print_player(p: Player, hide: bool) -> None:
    print(f"--- {p.name}: score {p.score}, win raw sum {p.win_raw_sum} ---")
    print(" ".join(card_label(c, hide) for c in p.cards))


def print_table(state: GameState) -> None:
    print()
    print(f"=== Round {state.round}/{ROUNDS} ===")
    print_player(state.ai, hide=True)
    print_player(state.user, hide=False)


def drain_logs(state: GameState) -> None:
    for line in state.logs:
        print(line)
    state.logs.clear()


def ask_card_id(prompt: str, choices: List[str]) -> str:
    while True:
        s = input(f"{prompt} {choices}: ").strip()
        if s in choices:
            return s
        # Accept the slot number alone, e.g. "3" for "user-3"
        matches = [c for c in choices if c.rsplit("-", 1)[-1] == s]
        if len(matches) == 1:
            return matches[0]
        print("Pick one of the listed card ids.")


def ask_response(pa: PendingAction) -> Dict[str, Any]:
    payload = pa.payload
    if pa.kind == "place_tokens":
        plus_id = ask_card_id("+1 token on", payload["choices"])
        minus_id = ask_card_id("-1 token on", payload["choices"])
        return {"plusId": plus_id, "minusId": minus_id}
    if pa.kind == "reveal_card":
        return {"revealId": ask_card_id("Reveal opponent card", payload["choices"])}
    return {"playId": ask_card_id("Play card", payload["choices"])}


def print_reason(provider: MoveProvider) -> None:
    if SHOW_AI_REASON and isinstance(provider, HeuristicProvider) and provider.explain is not None:
        print(provider.explain.pick_reason)
        provider.explain = None


def play_match(state: GameState, provider: MoveProvider) -> None:
    step(state, provider)
    drain_logs(state)
    while state.pending:
        pa = state.pending[0]
        print_table(state)
        while True:
            try:
                resolve(state, pa.id, ask_response(pa), provider)
                break
            except IllegalMoveError as e:
                print(f"Illegal move: {e.reason}")
        print_reason(provider)
        drain_logs(state)


def print_summary(state: GameState) -> None:
    print("\n=== Match Over ===")
    for h in state.history:
        print(
            f"Round {h.round}: you {h.user_card_value}->{h.user_final_value}, "
            f"AI {h.ai_card_value}->{h.ai_final_value}: {h.winner}"
        )
    print(f"{state.user.name}: {state.user.score} wins, raw sum {state.user.win_raw_sum}")
    print(f"{state.ai.name}: {state.ai.score} wins, raw sum {state.ai.win_raw_sum}")
    if state.verdict == "draw":
        print("Draw.")
    else:
        winner = state.user if state.verdict == "user" else state.ai
        print(f"Winner: {winner.name}")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Between Plus and Minus, console play against the AI")
    parser.add_argument("--seed", type=int, default=None, help="seed for the deal and AI tie-breaks")
    parser.add_argument("--ai", choices=["heuristic", "fallback"], default=AI_KIND)
    parser.add_argument("--verbose", action="store_true", help="show provider warnings")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.ERROR, format="%(levelname)s %(name)s: %(message)s")

    print("Between Plus and Minus: place a +1 and a -1 each round, peek, then play.")
    cfg = GameConfig(user_name=USER_NAME, ai_name=AI_NAME, ai_kind=args.ai, seed=args.seed)
    state = start_match(cfg)
    play_match(state, provider_for(cfg))
    print_summary(state)


if __name__ == "__main__":
    main()
