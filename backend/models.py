from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class NewMatchReq(BaseModel):
    userName: str = "You"
    aiName: str = "AI"
    aiKind: Literal["heuristic", "fallback"] = "heuristic"
    seed: Optional[int] = None
    userOrder: Optional[List[int]] = Field(default=None, min_length=9, max_length=9)
    aiOrder: Optional[List[int]] = Field(default=None, min_length=9, max_length=9)

    @field_validator("userOrder", "aiOrder")
    @classmethod
    def _is_permutation(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is not None and sorted(v) != list(range(1, 10)):
            raise ValueError("card order must be a permutation of 1..9")
        return v


class StepReq(BaseModel):
    sessionId: str


class ResolveReq(BaseModel):
    sessionId: str
    actionId: str
    response: Dict[str, Any]


class GetStateResp(BaseModel):
    state: Dict[str, Any]


class StateEnvelope(BaseModel):
    sessionId: str
    state: Dict[str, Any]
