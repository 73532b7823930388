"""FastAPI endpoints under /api.

The UI renders from GET /state and GET /debug and submits player text to
POST /chat. POST /reset is called after the UI has confirmed with the
player, so the server does not prompt again.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from rta_samvada.pipeline import Session, SessionBusyError

router = APIRouter()


class ChatBody(BaseModel):
    message: str


def _session(request: Request) -> Session:
    return request.app.state.session


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/state")
async def get_state(request: Request):
    """Current session state, history included."""
    return _session(request).state


@router.get("/debug")
async def get_debug(request: Request):
    """Latest debug panel text for the side panel."""
    return {"debug": _session(request).latest_debug()}


@router.post("/chat")
async def chat(request: Request, body: ChatBody):
    """Send a player message and run one turn."""
    session = _session(request)
    try:
        result = await session.submit(body.message)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except SessionBusyError as e:
        raise HTTPException(409, str(e))

    return {
        "messages": [m.model_dump() for m in result.messages],
        "state": result.state.model_dump(),
        "dissolved": result.dissolved,
        "notice": result.notice,
    }


@router.post("/reset")
async def reset(request: Request):
    """Dissolve the current self and start a fresh session."""
    session = _session(request)
    try:
        session.reset(confirm=False)
    except SessionBusyError as e:
        raise HTTPException(409, str(e))
    return session.state
