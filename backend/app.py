from __future__ import annotations

from dataclasses import dataclass
from typing import Dict
import uuid

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from backend.models import (
    NewMatchReq,
    StepReq,
    ResolveReq,
    GetStateResp,
    StateEnvelope,
)

from engine.core import (
    GameConfig,
    GameState,
    provider_for,
    start_match,
    step as engine_step,
    resolve as engine_resolve,
    to_json,
)
from engine.errors import IllegalMoveError
from engine.provider import MoveProvider


@dataclass
class Session:
    state: GameState
    provider: MoveProvider


# In-memory session store
SESSIONS: Dict[str, Session] = {}


def _new_session_id() -> str:
    return uuid.uuid4().hex


def get_session(session_id: str) -> Session:
    sess = SESSIONS.get(session_id)
    if sess is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return sess


def save_session(session_id: str, sess: Session) -> None:
    SESSIONS[session_id] = sess


app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.post("/new-match", response_model=StateEnvelope)
def new_match(req: NewMatchReq) -> StateEnvelope:
    try:
        cfg = GameConfig(
            user_name=req.userName,
            ai_name=req.aiName,
            ai_kind=req.aiKind,
            seed=req.seed,
            user_order=req.userOrder,
            ai_order=req.aiOrder,
        )
        state = start_match(cfg)
        provider = provider_for(cfg)
        # Kick off initial pending
        engine_step(state, provider)
        sid = _new_session_id()
        save_session(sid, Session(state=state, provider=provider))
        return StateEnvelope(sessionId=sid, state=to_json(state))
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"new-match failed: {e}")


@app.get("/state/{sessionId}", response_model=GetStateResp)
def get_state_endpoint(sessionId: str) -> GetStateResp:
    sess = get_session(sessionId)
    return GetStateResp(state=to_json(sess.state))


@app.post("/step", response_model=GetStateResp)
def step_endpoint(req: StepReq) -> GetStateResp:
    try:
        sess = get_session(req.sessionId)
        engine_step(sess.state, sess.provider)
        return GetStateResp(state=to_json(sess.state))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"step failed: {e}")


@app.post("/resolve", response_model=GetStateResp)
def resolve_endpoint(req: ResolveReq) -> GetStateResp:
    try:
        sess = get_session(req.sessionId)
        engine_resolve(sess.state, req.actionId, req.response, sess.provider)
        return GetStateResp(state=to_json(sess.state))
    except HTTPException:
        raise
    except IllegalMoveError as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except KeyError:
        raise HTTPException(status_code=404, detail="Pending action not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"resolve failed: {e}")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.app:app", host="0.0.0.0", port=8000, reload=True)
